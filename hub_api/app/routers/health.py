import asyncio

from typing import Any
from fastapi import APIRouter, Request, Response
from loguru import logger

from hub_api.app.core import SERVICE_NAME
from hub_api.app.schemas.health import UNHEALTHY, HealthStatus

health_router = APIRouter(tags=["Health"])

READINESS_TIMEOUT_DEFAULT = 5.0

def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _readiness_timeout(request: Request) -> float:
    settings = getattr(request.app.state, "settings", None)
    return settings.readiness_ping_timeout_seconds if settings is not None else READINESS_TIMEOUT_DEFAULT


def _status_response(status_code: int, health: HealthStatus) -> Response:
    return Response(status_code=status_code, media_type="application/json", content=health.model_dump_json())


@health_router.get(
    "/health/live",
    summary="Liveness probe",
    description="Returns 200 if the API process is running.",
    responses={200: {"description": "Service is alive."}},
)
async def live() -> dict:
    return {"status": "ok"}


@health_router.get(
    "/health/ready",
    summary="Readiness probe",
    description="Returns 200 only when the database (MongoDB) is connected and answers a ping within the readiness timeout.",
    responses={
        200: {"description": "Database is healthy."},
        503: {"description": "Database not connected or not answering."},
    },
)
async def ready(request: Request) -> Response:
    database = getattr(request.app.state, "database", None)
    if database is None:
        _log("components_not_initialized")
        return _status_response(503, HealthStatus(status=UNHEALTHY, message="Database not initialized"))

    timeout_s = _readiness_timeout(request)
    try:
        health = await asyncio.wait_for(database.health_check(), timeout=timeout_s)
    except asyncio.TimeoutError:
        _log("db_ping_timeout")
        return _status_response(503, HealthStatus(status=UNHEALTHY, message="Database health check timed out"))
    if not health.healthy:
        _log("db_not_ready", message=health.message)
        return _status_response(503, health)
    return _status_response(200, health)
