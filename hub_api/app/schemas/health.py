from typing import Literal

from pydantic import BaseModel

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"


class HealthStatus(BaseModel):
    status: Literal["healthy", "unhealthy"]
    message: str

    @property
    def healthy(self) -> bool:
        return self.status == HEALTHY
