import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from hub_api.app.composition import create_app_dependencies
from hub_api.app.core import SERVICE_NAME
from hub_api.app.routers.health import health_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.bind(service_name=SERVICE_NAME, event="api_starting").info("")
    dependencies = create_app_dependencies()
    # No serving without a database: a connect failure aborts startup.
    await dependencies.connect()

    app.state.settings = dependencies.settings
    app.state.database = dependencies.database
    app.state.account_repository = dependencies.account_repository
    try:
        yield
    finally:
        logger.bind(service_name=SERVICE_NAME, event="api_stopping").info("")
        try:
            await asyncio.wait_for(dependencies.close(), timeout=dependencies.settings.shutdown_timeout_seconds)
        except asyncio.TimeoutError:
            logger.bind(service_name=SERVICE_NAME, event="api_shutdown_timeout").error("")


app = FastAPI(
    title="Prenatal Learning Hub API",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health_router)
