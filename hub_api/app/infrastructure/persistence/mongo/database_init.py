"""Collection and index bootstrap. Runs once at startup after the connection is established."""
from __future__ import annotations

from typing import Any

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from hub_api.app.core import SERVICE_NAME
from hub_api.app.infrastructure.persistence.mongo.constants import Collections
from hub_api.app.infrastructure.persistence.mongo.mongo_connection import MongoConnection


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


async def initialize_database(connection: MongoConnection) -> None:
    database = await connection.connect()

    existing = set(await database.list_collection_names())
    for name in Collections.ALL:
        if name not in existing:
            await database.create_collection(name)
            _log("db_collection_created", collection=name)

    await create_indexes(database)
    _log("db_initialized")


async def create_indexes(database: AsyncIOMotorDatabase) -> None:
    users = database[Collections.USERS]
    await users.create_index("email", unique=True, name="uq_users_email")
    await users.create_index("deletionRequestedAt", sparse=True, name="idx_users_deletion_requested_at")

    preferences = database[Collections.USER_PREFERENCES]
    await preferences.create_index("userId", unique=True, name="uq_preferences_user")

    journal = database[Collections.JOURNAL_ENTRIES]
    await journal.create_index("userId", name="idx_journal_user")
    await journal.create_index([("userId", ASCENDING), ("journalDate", ASCENDING)], name="idx_journal_user_date")
    await journal.create_index("journalDate", name="idx_journal_date")

    voice_notes = database[Collections.VOICE_NOTES]
    await voice_notes.create_index("userId", name="idx_voice_notes_user")
    await voice_notes.create_index("journalEntryId", name="idx_voice_notes_entry")

    kicks = database[Collections.KICK_EVENTS]
    await kicks.create_index("userId", name="idx_kicks_user")
    await kicks.create_index([("userId", ASCENDING), ("timestamp", DESCENDING)], name="idx_kicks_user_timestamp")
    await kicks.create_index([("timestamp", DESCENDING)], name="idx_kicks_timestamp")

    progress = database[Collections.PROGRESS]
    await progress.create_index("userId", name="idx_progress_user")
    await progress.create_index(
        [("userId", ASCENDING), ("storyId", ASCENDING)],
        unique=True,
        name="uq_progress_user_story",
    )

    streaks = database[Collections.STREAKS]
    await streaks.create_index("userId", unique=True, name="uq_streaks_user")
