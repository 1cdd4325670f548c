"""Runs against a live MongoDB (MONGODB_URI, default mongodb://localhost:27017). Select with `-m integration`."""
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from bson import ObjectId

from hub_api.app.infrastructure.persistence.mongo.constants import Collections
from hub_api.app.infrastructure.persistence.mongo.database_init import initialize_database
from hub_api.app.infrastructure.persistence.mongo.mongo_account_repository import MongoAccountRepository
from hub_api.app.infrastructure.persistence.mongo.mongo_connection import MongoConnection
from hub_api.app.jobs.account_purge import purge_expired_accounts
from hub_api.app.services.admission import RejectionReason, admit_account
from hub_api.app.services.tokens import issue_token
from tests.conftest import make_settings


@pytest_asyncio.fixture()
async def connection():
    settings = make_settings(
        mongodb_db_name=f"hub_test_{ObjectId()}",
        max_connection_attempts=5,
        initial_backoff_seconds=0.5,
        max_backoff_seconds=2.0,
        account_purge_enabled=False,
    )
    conn = MongoConnection(settings)
    await conn.connect()
    await initialize_database(conn)
    yield conn
    await conn.get_transport().drop_database(settings.mongodb_db_name)
    await conn.close()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_connect_health_and_close(connection):
    assert connection.is_connected is True
    health = await connection.health_check()
    assert health.status == "healthy"

    await connection.close()
    assert connection.is_connected is False
    await connection.connect()
    assert connection.is_connected is True


@pytest.mark.integration
@pytest.mark.asyncio
async def test_account_admission_and_purge_round(connection):
    settings = make_settings()
    users = connection.collection(Collections.USERS)
    now = datetime.now(timezone.utc)
    active_id = (await users.insert_one({"email": "active@example.com", "name": "A"})).inserted_id
    gone_id = (
        await users.insert_one(
            {"email": "gone@example.com", "name": "G", "deletionRequestedAt": now - timedelta(days=31)}
        )
    ).inserted_id
    await connection.collection(Collections.KICK_EVENTS).insert_one({"userId": gone_id, "timestamp": now})
    accounts = MongoAccountRepository(connection)

    admitted = await admit_account(issue_token(str(active_id), settings), settings, accounts)
    purged = await admit_account(issue_token(str(gone_id), settings), settings, accounts)
    assert admitted.admitted is True
    assert purged.reason == RejectionReason.ACCOUNT_PURGED

    assert await purge_expired_accounts(accounts, 30) == 1
    assert await users.find_one({"_id": gone_id}) is None
    assert await connection.collection(Collections.KICK_EVENTS).count_documents({"userId": gone_id}) == 0
    assert await users.find_one({"_id": active_id}) is not None
