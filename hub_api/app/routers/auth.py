"""Admission stages for protected routes.

    @router.get("/journal")
    async def list_entries(principal: Principal = Depends(require_auth)): ...

    @router.get("/account")
    async def account(principal: Principal = Depends(require_auth_with_account)): ...
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, Request, status
from loguru import logger

from hub_api.app.config.settings import Settings
from hub_api.app.core import SERVICE_NAME
from hub_api.app.services.admission import AdmissionOutcome, admit_account, admit_identity
from hub_api.app.services.tokens import extract_token


@dataclass(frozen=True)
class Principal:
    subject_id: str
    account: dict[str, Any] | None = None


def _settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service not ready")
    return settings


def _token(request: Request, settings: Settings) -> str | None:
    return extract_token(
        dict(request.cookies),
        request.headers.get("authorization"),
        settings.auth_cookie_name,
    )


def _principal_or_401(outcome: AdmissionOutcome) -> Principal:
    if not outcome.admitted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": outcome.error_message, "reason": outcome.reason},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Principal(subject_id=outcome.subject_id, account=outcome.account)


async def require_auth(request: Request) -> Principal:
    settings = _settings(request)
    return _principal_or_401(admit_identity(_token(request, settings), settings))


async def require_auth_with_account(request: Request) -> Principal:
    settings = _settings(request)
    accounts = getattr(request.app.state, "account_repository", None)
    if accounts is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database not available")

    try:
        outcome = await admit_account(_token(request, settings), settings, accounts)
    except Exception as e:
        logger.bind(service_name=SERVICE_NAME, event="account_lookup_error", error=str(e)).warning("")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database not available") from e
    return _principal_or_401(outcome)


__all__ = [
    "Principal",
    "require_auth",
    "require_auth_with_account",
]
