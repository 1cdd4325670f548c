"""MongoDB connection manager.

Owns the single live database handle of the process: lazy establishment with
retry/backoff, one in-flight attempt shared by concurrent callers, liveness
reporting, and clearing of the handle when the transport goes away.
"""
from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import monitoring
from pymongo.read_preferences import ReadPreference

from hub_api.app.config.settings import Settings
from hub_api.app.core import SERVICE_NAME
from hub_api.app.core.backoff import backoff_delay, exponential_backoff
from hub_api.app.infrastructure.persistence.mongo.constants import ConnectionState
from hub_api.app.schemas.health import HEALTHY, UNHEALTHY, HealthStatus


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class DatabaseConnectionError(RuntimeError):
    """Raised when every connection attempt failed."""


class DatabaseNotConnectedError(RuntimeError):
    """Raised when the handle or transport is requested while not connected."""


async def _close_client(client: AsyncIOMotorClient) -> None:
    res = client.close()
    if inspect.isawaitable(res):
        await res


class _TransportLifecycleListener(monitoring.TopologyListener):
    """Reports topology close and loss of every readable server for one client generation.

    pymongo invokes listeners from its monitor threads; the callback is handed to the event loop.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        on_lost: Callable[[int, str], None],
        generation: int,
    ) -> None:
        self._loop = loop
        self._on_lost = on_lost
        self._generation = generation

    def _notify(self, reason: str) -> None:
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._on_lost, self._generation, reason)

    def opened(self, event: monitoring.TopologyOpenedEvent) -> None:
        pass

    def description_changed(self, event: monitoring.TopologyDescriptionChangedEvent) -> None:
        readable = ReadPreference.PRIMARY_PREFERRED
        if event.previous_description.has_readable_server(readable) and not event.new_description.has_readable_server(
            readable
        ):
            self._notify("no_readable_server")

    def closed(self, event: monitoring.TopologyClosedEvent) -> None:
        self._notify("topology_closed")


class MongoConnection:
    """DatabaseConnection implementation using MongoDB.

    One instance is built by the composition root and shared by reference. `connect()` is
    safe to call from concurrent request handlers: at most one establishment attempt sequence
    runs at a time and late callers await its outcome.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._state = ConnectionState.DISCONNECTED
        self._client: AsyncIOMotorClient | None = None
        self._database: AsyncIOMotorDatabase | None = None
        self._connect_task: asyncio.Task | None = None
        self._generation = 0
        self._active_generation: int | None = None
        self._close_epoch = 0
        self._background: set[asyncio.Task] = set()

    @property
    def is_connected(self) -> bool:
        return self._database is not None and self._client is not None

    @property
    def ready(self) -> bool:
        return self.is_connected

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connecting(self) -> bool:
        return self._connect_task is not None and not self._connect_task.done()

    def get_handle(self) -> AsyncIOMotorDatabase:
        if self._database is None:
            raise DatabaseNotConnectedError("Database not connected. Call connect() first.")
        return self._database

    def get_transport(self) -> AsyncIOMotorClient:
        if self._client is None:
            raise DatabaseNotConnectedError("Database not connected. Call connect() first.")
        return self._client

    def collection(self, name: str) -> AsyncIOMotorCollection:
        return self.get_handle()[name]

    async def connect(self) -> AsyncIOMotorDatabase:
        if self._database is not None and self._client is not None:
            return self._database

        task = self._connect_task
        if task is None:
            task = asyncio.ensure_future(self._establish())
            task.add_done_callback(self._on_connect_done)
            self._connect_task = task
        # shield: a cancelled waiter must not abort the attempt the other callers share
        return await asyncio.shield(task)

    def _on_connect_done(self, task: asyncio.Task) -> None:
        if self._connect_task is task:
            self._connect_task = None
        if not task.cancelled():
            # outcome already logged by _establish; mark it retrieved
            task.exception()

    def _client_options(self, listener: monitoring.TopologyListener) -> dict[str, Any]:
        s = self._settings
        return {
            "maxPoolSize": s.mongodb_max_pool_size,
            "minPoolSize": s.mongodb_min_pool_size,
            "maxIdleTimeMS": s.mongodb_max_idle_time_ms,
            "connectTimeoutMS": s.mongodb_connect_timeout_ms,
            "socketTimeoutMS": s.mongodb_socket_timeout_ms,
            "serverSelectionTimeoutMS": s.mongodb_server_selection_timeout_ms,
            "retryWrites": True,
            "retryReads": True,
            "event_listeners": [listener],
        }

    async def _establish(self) -> AsyncIOMotorDatabase:
        s = self._settings
        loop = asyncio.get_running_loop()
        self._state = ConnectionState.CONNECTING
        epoch = self._close_epoch

        last_error: Exception | None = None
        async for attempt in exponential_backoff(
            s.initial_backoff_seconds,
            s.max_backoff_seconds,
            s.backoff_multiplier,
            s.max_connection_attempts,
        ):
            if epoch != self._close_epoch:
                break
            _log("db_connect_attempt", attempt=attempt, max_attempts=s.max_connection_attempts)
            self._generation += 1
            generation = self._generation
            listener = _TransportLifecycleListener(loop, self._on_transport_lost, generation)
            client: AsyncIOMotorClient | None = None
            try:
                client = AsyncIOMotorClient(s.mongodb_uri, **self._client_options(listener))
                database = client[s.mongodb_db_name]
                await database.command("ping")
            except Exception as exc:
                last_error = exc
                logger.warning("db connect failed: {}", exc)
                if client is not None:
                    await self._discard_client(client)
                if attempt < s.max_connection_attempts:
                    delay = backoff_delay(attempt - 1, s.initial_backoff_seconds, s.backoff_multiplier, s.max_backoff_seconds)
                    _log("db_connect_retry", attempt=attempt, delay=delay)
                continue

            if epoch != self._close_epoch:
                # close() ran while this attempt was pinging
                await self._discard_client(client)
                break

            self._client = client
            self._database = database
            self._active_generation = generation
            self._state = ConnectionState.CONNECTED
            _log("db_connected", database=s.mongodb_db_name, attempt=attempt)
            return database

        self._state = ConnectionState.DISCONNECTED
        if epoch != self._close_epoch:
            _log("db_connect_aborted")
            raise DatabaseConnectionError("Connection closed while connecting")
        _log("db_connect_failed", attempts=s.max_connection_attempts)
        raise DatabaseConnectionError(
            f"Failed to connect to MongoDB after {s.max_connection_attempts} attempts. Last error: {last_error}"
        ) from last_error

    async def _discard_client(self, client: AsyncIOMotorClient) -> None:
        if client is self._client:
            self._client = None
            self._database = None
            self._active_generation = None
        try:
            await _close_client(client)
        except Exception as exc:
            logger.warning("db client close failed: {}", exc)

    def _on_transport_lost(self, generation: int, reason: str) -> None:
        """Runs on the event loop. Ignores events from clients that are no longer current."""
        if generation != self._active_generation:
            return
        client = self._client
        self._active_generation = None
        self._client = None
        self._database = None
        self._state = ConnectionState.DISCONNECTED
        _log("db_transport_lost", reason=reason)
        if client is not None and reason != "topology_closed":
            self._run_in_background(self._discard_client(client))

    def _run_in_background(self, coro: Any) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def ping(self) -> bool:
        """Return True if the database responds to ping; False if not connected or any error."""
        if self._database is None:
            return False
        try:
            await self._database.command("ping")
            return True
        except Exception:
            return False

    async def health_check(self) -> HealthStatus:
        """Liveness probe as a status value. A failed probe drops the handle so the next connect() re-establishes."""
        if not self.is_connected:
            return HealthStatus(status=UNHEALTHY, message="Not connected to database")
        database = self._database
        try:
            await database.command("ping")
        except Exception as exc:
            if database is self._database and self._active_generation is not None:
                self._on_transport_lost(self._active_generation, "readiness_check_failed")
            return HealthStatus(status=UNHEALTHY, message=f"Database health check failed: {exc}")
        return HealthStatus(status=HEALTHY, message="Database connection is healthy")

    async def close(self) -> None:
        client = self._client
        self._close_epoch += 1
        self._active_generation = None
        if client is not None:
            try:
                await _close_client(client)
                _log("db_closed")
            except Exception as exc:
                logger.warning("db close failed: {}", exc)
            finally:
                self._client = None
                self._database = None
        self._state = ConnectionState.DISCONNECTED
