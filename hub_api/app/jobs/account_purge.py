"""Periodic hard deletion of accounts whose soft-delete grace period has run out."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

from loguru import logger

from hub_api.app.core import SERVICE_NAME
from hub_api.app.ports.account_repository import AccountRepository


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


async def purge_expired_accounts(
    accounts: AccountRepository,
    grace_days: int,
    *,
    now: datetime | None = None,
) -> int:
    """Purge every account whose deletion request is at least `grace_days` old. Returns the number purged."""
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=grace_days)
    expired = await accounts.find_pending_purge(cutoff)
    _log("account_purge_candidates", count=len(expired))

    deleted = 0
    for account in expired:
        try:
            await accounts.purge_account(account["_id"])
            deleted += 1
        except Exception as exc:
            logger.warning("account purge failed for {}: {}", account.get("_id"), exc)
    return deleted


class AccountPurgeJob:
    """Runs `purge_expired_accounts` immediately on start, then every `interval_seconds`."""

    def __init__(self, accounts: AccountRepository, *, interval_seconds: float, grace_days: int) -> None:
        self._accounts = accounts
        self._interval_seconds = interval_seconds
        self._grace_days = grace_days
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            _log("account_purge_already_running")
            return
        _log("account_purge_job_started", interval_seconds=self._interval_seconds)
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        _log("account_purge_job_stopped")

    async def run_once(self) -> int:
        _log("account_purge_started")
        try:
            deleted = await purge_expired_accounts(self._accounts, self._grace_days)
        except Exception as exc:
            logger.exception("account purge run failed: {}", exc)
            _log("account_purge_failed")
            return 0
        _log("account_purge_completed", deleted=deleted)
        return deleted

    async def _run(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval_seconds)
