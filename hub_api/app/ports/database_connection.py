"""Port: database connection lifecycle, liveness and handle access. Implementations live in infrastructure."""
from __future__ import annotations

from typing import Any, Protocol

from hub_api.app.schemas.health import HealthStatus


class DatabaseConnection(Protocol):
    """Interface for the process-wide DB connection."""

    @property
    def ready(self) -> bool: ...

    @property
    def connecting(self) -> bool: ...

    async def connect(self) -> Any: ...

    def get_handle(self) -> Any: ...

    def get_transport(self) -> Any: ...

    async def ping(self) -> bool: ...

    async def health_check(self) -> HealthStatus: ...

    async def close(self) -> None: ...
