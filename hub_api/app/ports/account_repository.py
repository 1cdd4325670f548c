"""Port: account record lookups and purging."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from bson import ObjectId


class AccountRepository(Protocol):
    async def find_by_id(self, user_id: ObjectId) -> dict[str, Any] | None: ...

    async def find_pending_purge(self, cutoff: datetime) -> list[dict[str, Any]]:
        """Accounts whose deletion was requested at or before `cutoff`."""
        ...

    async def purge_account(self, user_id: ObjectId) -> None: ...
