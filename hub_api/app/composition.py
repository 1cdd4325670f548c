"""
Composition root: single place where concrete implementations are wired.

Builds settings, database connection, account repository and purge job from config;
provides connect/close lifecycle. Used by lifespan to populate app.state. No DI
container library, explicit wiring only.
"""

from typing import Any

from loguru import logger

from hub_api.app.config.settings import Settings
from hub_api.app.core import SERVICE_NAME
from hub_api.app.jobs.account_purge import AccountPurgeJob
from hub_api.app.ports.account_repository import AccountRepository
from hub_api.app.ports.database_connection import DatabaseConnection
from hub_api.app.infrastructure.persistence.factory import (
    create_account_repository,
    create_database_connection,
)
from hub_api.app.infrastructure.persistence.mongo.database_init import initialize_database


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class AppDependencies:
    """Holds wired dependencies and their lifecycle. Built only in composition root."""

    def __init__(
        self,
        *,
        settings: Settings,
        database: DatabaseConnection,
        account_repository: AccountRepository,
        purge_job: AccountPurgeJob | None,
    ) -> None:
        self._settings = settings
        self._database = database
        self._account_repository = account_repository
        self._purge_job = purge_job
        self._database_connected = False

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def database(self) -> DatabaseConnection:
        return self._database

    @property
    def account_repository(self) -> AccountRepository:
        return self._account_repository

    @property
    def purge_job(self) -> AccountPurgeJob | None:
        return self._purge_job

    async def connect(self) -> None:
        """Connect and bootstrap the database, then start background jobs. Connection failure propagates."""
        await self._database.connect()
        self._database_connected = True
        try:
            await initialize_database(self._database)
        except Exception:
            await self._database.close()
            self._database_connected = False
            raise
        if self._purge_job is not None:
            self._purge_job.start()

    async def close(self) -> None:
        if self._purge_job is not None:
            await self._purge_job.stop()
        if self._database_connected and self._database is not None:
            await self._database.close()
            self._database_connected = False
        _log("dependencies_closed")


def create_app_dependencies(settings: Settings | None = None) -> AppDependencies:
    """
    Composition root: build all app dependencies in one place.
    Caller owns lifecycle (connect/close). The database backend is selected from settings.
    """
    _settings = settings or Settings()
    database = create_database_connection(_settings)
    repository = create_account_repository(_settings, database)
    purge_job = None
    if _settings.account_purge_enabled:
        purge_job = AccountPurgeJob(
            repository,
            interval_seconds=_settings.account_purge_interval_seconds,
            grace_days=_settings.deletion_grace_period_days,
        )

    return AppDependencies(
        settings=_settings,
        database=database,
        account_repository=repository,
        purge_job=purge_job,
    )
