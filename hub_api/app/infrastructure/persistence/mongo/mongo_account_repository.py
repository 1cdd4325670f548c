"""MongoDB implementation of AccountRepository."""
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

from bson import ObjectId
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorGridFSBucket
from pymongo.errors import PyMongoError

from hub_api.app.core import SERVICE_NAME
from hub_api.app.infrastructure.persistence.mongo.constants import VOICE_NOTES_BUCKET, Collections
from hub_api.app.infrastructure.persistence.mongo.mongo_connection import MongoConnection
from hub_api.app.ports.account_repository import AccountRepository


class MongoAccountRepository(AccountRepository):
    """Reads go through `connection.connect()` so a dropped transport is re-established on next use."""

    def __init__(self, database: MongoConnection) -> None:
        self._database = database

    async def find_by_id(self, user_id: ObjectId) -> dict[str, Any] | None:
        db = await self._database.connect()
        return await db[Collections.USERS].find_one({"_id": user_id})

    async def find_pending_purge(self, cutoff: datetime) -> list[dict[str, Any]]:
        db = await self._database.connect()
        cursor = db[Collections.USERS].find({"deletionRequestedAt": {"$lte": cutoff}})
        return await cursor.to_list(length=None)

    async def purge_account(self, user_id: ObjectId) -> None:
        db = await self._database.connect()

        # GridFS files first; their ids live on the voice note metadata deleted below.
        bucket = AsyncIOMotorGridFSBucket(db, bucket_name=VOICE_NOTES_BUCKET)
        async for voice_note in db[Collections.VOICE_NOTES].find({"userId": user_id}, {"fileId": 1}):
            file_id = voice_note.get("fileId")
            if file_id is None:
                continue
            try:
                await bucket.delete(file_id)
            except PyMongoError as exc:
                logger.warning("voice note file delete failed: {} ({})", file_id, exc)

        await asyncio.gather(
            db[Collections.JOURNAL_ENTRIES].delete_many({"userId": user_id}),
            db[Collections.VOICE_NOTES].delete_many({"userId": user_id}),
            db[Collections.KICK_EVENTS].delete_many({"userId": user_id}),
            db[Collections.PROGRESS].delete_many({"userId": user_id}),
            db[Collections.STREAKS].delete_many({"userId": user_id}),
        )
        await db[Collections.USER_PREFERENCES].delete_one({"userId": user_id})
        await db[Collections.USERS].delete_one({"_id": user_id})
        logger.bind(service_name=SERVICE_NAME, event="account_purged", user_id=str(user_id)).info("")
