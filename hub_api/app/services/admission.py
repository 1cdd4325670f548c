"""
Request admission: decides whether a credential identifies an existing, non-purged account.

Accepts plain Python types and the AccountRepository abstraction; returns an outcome.
The HTTP layer translates a rejected outcome to a 401 response.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from loguru import logger

from hub_api.app.config.settings import Settings
from hub_api.app.core import SERVICE_NAME
from hub_api.app.ports.account_repository import AccountRepository
from hub_api.app.services.tokens import InvalidTokenError, TokenExpiredError, decode_token
from hub_api.app.utils.object_id import is_valid_object_id, to_object_id


class RejectionReason:
    AUTHENTICATION_REQUIRED = "authentication_required"
    TOKEN_EXPIRED = "token_expired"
    INVALID_TOKEN = "invalid_token"
    ACCOUNT_NOT_FOUND = "account_not_found"
    ACCOUNT_PURGED = "account_purged"


REJECTION_MESSAGES = {
    RejectionReason.AUTHENTICATION_REQUIRED: "Authentication required",
    RejectionReason.TOKEN_EXPIRED: "Token expired",
    RejectionReason.INVALID_TOKEN: "Invalid token",
    RejectionReason.ACCOUNT_NOT_FOUND: "User not found",
    RejectionReason.ACCOUNT_PURGED: "Account no longer exists",
}


@dataclass(frozen=True)
class AdmissionOutcome:
    """Result of an admission check.
    admitted=True => subject_id set; account set as well for account-level admission.
    admitted=False => reason set to one of RejectionReason.
    """
    admitted: bool
    reason: str | None = None
    subject_id: str | None = None
    account: dict[str, Any] | None = None

    @property
    def error_message(self) -> str | None:
        if self.reason is None:
            return None
        return REJECTION_MESSAGES.get(self.reason, "Unauthorized")


def _reject(reason: str) -> AdmissionOutcome:
    logger.bind(service_name=SERVICE_NAME, event="auth_rejected", reason=reason).debug("")
    return AdmissionOutcome(admitted=False, reason=reason)


def admit_identity(token: str | None, settings: Settings) -> AdmissionOutcome:
    """Identity-only admission: a valid, unexpired credential whose subject is a well-formed id."""
    if not token:
        return _reject(RejectionReason.AUTHENTICATION_REQUIRED)

    try:
        subject_id = decode_token(token, settings)
    except TokenExpiredError:
        return _reject(RejectionReason.TOKEN_EXPIRED)
    except InvalidTokenError:
        return _reject(RejectionReason.INVALID_TOKEN)

    if not is_valid_object_id(subject_id):
        return _reject(RejectionReason.INVALID_TOKEN)

    return AdmissionOutcome(admitted=True, subject_id=subject_id)


def deletion_grace_expired(deletion_requested_at: datetime, grace_days: int, now: datetime) -> bool:
    if deletion_requested_at.tzinfo is None:
        # pymongo returns naive UTC datetimes unless the client is tz_aware
        deletion_requested_at = deletion_requested_at.replace(tzinfo=timezone.utc)
    return now >= deletion_requested_at + timedelta(days=grace_days)


async def admit_account(
    token: str | None,
    settings: Settings,
    accounts: AccountRepository,
    *,
    now: datetime | None = None,
) -> AdmissionOutcome:
    """Identity plus record admission. Identity rejections are returned unchanged."""
    identity = admit_identity(token, settings)
    if not identity.admitted:
        return identity

    account = await accounts.find_by_id(to_object_id(identity.subject_id))
    if account is None:
        return _reject(RejectionReason.ACCOUNT_NOT_FOUND)

    deletion_requested_at = account.get("deletionRequestedAt")
    if deletion_requested_at is not None and deletion_grace_expired(
        deletion_requested_at,
        settings.deletion_grace_period_days,
        now or datetime.now(timezone.utc),
    ):
        return _reject(RejectionReason.ACCOUNT_PURGED)

    return AdmissionOutcome(admitted=True, subject_id=identity.subject_id, account=account)
