"""Database connection factory: selects implementation from config. Only place that imports concrete connections."""
from __future__ import annotations

from hub_api.app.config.settings import Settings
from hub_api.app.ports.account_repository import AccountRepository
from hub_api.app.ports.database_connection import DatabaseConnection
from hub_api.app.infrastructure.persistence.mongo.mongo_account_repository import MongoAccountRepository
from hub_api.app.infrastructure.persistence.mongo.mongo_connection import MongoConnection


def create_database_connection(settings: Settings) -> DatabaseConnection:
    backend = settings.database_backend.strip().lower()

    if backend in ("mongo",):
        return MongoConnection(settings)

    raise ValueError(f"Unsupported database backend: {backend}")


def create_account_repository(settings: Settings, database: DatabaseConnection) -> AccountRepository:
    """Build AccountRepository for the current database backend. Repository shares the connection used by readiness."""
    backend = settings.database_backend.strip().lower()

    if backend == "mongo":
        if not isinstance(database, MongoConnection):
            raise ValueError(
                f"Account repository for backend 'mongo' requires MongoConnection, got {type(database).__name__}"
            )
        return MongoAccountRepository(database)

    raise ValueError(f"Unsupported database backend for account repository: {backend}")
