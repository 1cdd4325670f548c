from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

import pytest
from bson import ObjectId
from fastapi import Depends, FastAPI
from pymongo.errors import ServerSelectionTimeoutError

from hub_api.app.config.settings import Settings
from hub_api.app.routers.auth import Principal, require_auth, require_auth_with_account
from hub_api.app.routers.health import health_router
from hub_api.app.schemas.health import HEALTHY, UNHEALTHY, HealthStatus

TEST_JWT_SECRET = "test-secret"


def make_settings(**overrides: Any) -> Settings:
    base = {
        "jwt_secret": TEST_JWT_SECRET,
        "initial_backoff_seconds": 0.0,
        "max_backoff_seconds": 0.0,
    }
    base.update(overrides)
    return Settings().model_copy(update=base)


class FakeMotorDatabase:
    def __init__(self, client: "FakeMotorClient", name: str) -> None:
        self.client = client
        self.name = name

    async def command(self, name: str) -> dict[str, Any]:
        server = self.client.server
        server.commands.append(name)
        if server.ping_delay:
            await asyncio.sleep(server.ping_delay)
        if self.client.unreachable or not server.reachable:
            raise ServerSelectionTimeoutError("No servers found yet")
        return {"ok": 1.0}


class FakeMotorClient:
    """Stands in for AsyncIOMotorClient; reachability is scripted by the owning FakeMongoServer."""

    def __init__(self, server: "FakeMongoServer", uri: str, options: dict[str, Any]) -> None:
        self.server = server
        self.uri = uri
        self.options = options
        self.unreachable = len(server.clients) < server.fail_times
        self.closed = False
        self._databases: dict[str, FakeMotorDatabase] = {}

    @property
    def listener(self) -> Any:
        return self.options["event_listeners"][0]

    def __getitem__(self, name: str) -> FakeMotorDatabase:
        if name not in self._databases:
            self._databases[name] = FakeMotorDatabase(self, name)
        return self._databases[name]

    def close(self) -> None:
        self.closed = True


class FakeMongoServer:
    """The first `fail_times` clients built fail their ping; later ones succeed while `reachable`."""

    def __init__(self, fail_times: int = 0, *, ping_delay: float = 0.0) -> None:
        self.fail_times = fail_times
        self.ping_delay = ping_delay
        self.reachable = True
        self.clients: list[FakeMotorClient] = []
        self.commands: list[str] = []

    @property
    def attempts(self) -> int:
        return len(self.clients)

    def client_factory(self, uri: str, **options: Any) -> FakeMotorClient:
        client = FakeMotorClient(self, uri, options)
        self.clients.append(client)
        return client


@pytest.fixture()
def mongo_server(monkeypatch) -> FakeMongoServer:
    import hub_api.app.infrastructure.persistence.mongo.mongo_connection as mod

    server = FakeMongoServer()
    monkeypatch.setattr(mod, "AsyncIOMotorClient", server.client_factory)
    return server


class FakeDatabase:
    """Implements DatabaseConnection for router tests."""

    def __init__(self, healthy: bool = True, *, health_delay: float = 0.0) -> None:
        self._healthy = healthy
        self._health_delay = health_delay
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def connecting(self) -> bool:
        return False

    async def connect(self) -> Any:
        self._ready = True
        return object()

    async def ping(self) -> bool:
        return self._healthy

    async def health_check(self) -> HealthStatus:
        if self._health_delay:
            await asyncio.sleep(self._health_delay)
        if self._healthy:
            return HealthStatus(status=HEALTHY, message="Database connection is healthy")
        return HealthStatus(status=UNHEALTHY, message="Database health check failed: boom")

    async def close(self) -> None:
        self._ready = False


class FakeAccountRepository:
    """Implements AccountRepository over an in-memory dict keyed by ObjectId."""

    def __init__(
        self,
        accounts: list[dict[str, Any]] | None = None,
        *,
        raise_on_find: Exception | None = None,
        fail_purge_for: set[ObjectId] | None = None,
    ) -> None:
        self.accounts: dict[ObjectId, dict[str, Any]] = {a["_id"]: a for a in accounts or []}
        self.find_calls: list[ObjectId] = []
        self.purged: list[ObjectId] = []
        self._raise_on_find = raise_on_find
        self._fail_purge_for = fail_purge_for or set()

    def add(self, account: dict[str, Any]) -> dict[str, Any]:
        self.accounts[account["_id"]] = account
        return account

    async def find_by_id(self, user_id: ObjectId) -> dict[str, Any] | None:
        self.find_calls.append(user_id)
        if self._raise_on_find is not None:
            raise self._raise_on_find
        return self.accounts.get(user_id)

    async def find_pending_purge(self, cutoff: datetime) -> list[dict[str, Any]]:
        return [
            a
            for a in self.accounts.values()
            if a.get("deletionRequestedAt") is not None and a["deletionRequestedAt"] <= cutoff
        ]

    async def purge_account(self, user_id: ObjectId) -> None:
        if user_id in self._fail_purge_for:
            raise RuntimeError(f"purge failed for {user_id}")
        self.accounts.pop(user_id, None)
        self.purged.append(user_id)


@pytest.fixture()
def test_app() -> FastAPI:
    app = FastAPI()
    app.state.settings = make_settings()
    app.state.database = FakeDatabase()
    app.state.account_repository = FakeAccountRepository()
    app.include_router(health_router)

    @app.get("/me")
    async def me(principal: Principal = Depends(require_auth)) -> dict:
        return {"subject_id": principal.subject_id}

    @app.get("/me/account")
    async def me_account(principal: Principal = Depends(require_auth_with_account)) -> dict:
        return {"subject_id": principal.subject_id, "name": principal.account.get("name")}

    return app
