"""Credential signing and verification (HS256 JWT carrying a `userId` claim)."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from hub_api.app.config.settings import Settings

JWT_ALGORITHM = "HS256"
SUBJECT_CLAIM = "userId"
BEARER_PREFIX = "Bearer "


class TokenError(Exception):
    """Base error for credential verification failures."""


class TokenExpiredError(TokenError):
    """Raised when the credential's `exp` claim is in the past."""


class InvalidTokenError(TokenError):
    """Raised when the credential fails signature or structure checks."""


def issue_token(user_id: str, settings: Settings, *, remember_me: bool = False, now: datetime | None = None) -> str:
    lifetime = settings.jwt_remember_me_expires_in_seconds if remember_me else settings.jwt_expires_in_seconds
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        SUBJECT_CLAIM: user_id,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=lifetime),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, settings: Settings) -> str:
    """Verify signature and expiry; return the subject id claim (not yet format-checked)."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError(str(exc)) from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError(str(exc)) from exc

    subject = payload.get(SUBJECT_CLAIM)
    if not isinstance(subject, str):
        raise InvalidTokenError(f"missing {SUBJECT_CLAIM} claim")
    return subject


def extract_token(
    cookies: dict[str, str],
    authorization: str | None,
    cookie_name: str,
) -> str | None:
    """Cookie first, then an `Authorization: Bearer <token>` header."""
    token = cookies.get(cookie_name)
    if token:
        return token
    if authorization and authorization.startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):] or None
    return None
