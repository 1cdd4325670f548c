"""Settings for the API."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SECONDS_PER_DAY = 24 * 60 * 60


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str = Field(
        "mongodb://localhost:27017/prenatal-learning-hub",
        validation_alias="MONGODB_URI",
    )
    mongodb_db_name: str = Field("prenatal-learning-hub", validation_alias="MONGODB_DB_NAME")

    mongodb_max_pool_size: int = Field(10, validation_alias="MONGODB_MAX_POOL_SIZE")
    mongodb_min_pool_size: int = Field(2, validation_alias="MONGODB_MIN_POOL_SIZE")
    mongodb_max_idle_time_ms: int = Field(30000, validation_alias="MONGODB_MAX_IDLE_TIME_MS")
    mongodb_connect_timeout_ms: int = Field(10000, validation_alias="MONGODB_CONNECT_TIMEOUT_MS")
    mongodb_socket_timeout_ms: int = Field(45000, validation_alias="MONGODB_SOCKET_TIMEOUT_MS")
    mongodb_server_selection_timeout_ms: int = Field(
        10000,
        validation_alias="MONGODB_SERVER_SELECTION_TIMEOUT_MS",
    )

    max_connection_attempts: int = Field(3, ge=1, validation_alias="MAX_CONNECTION_ATTEMPTS")
    initial_backoff_seconds: float = Field(1.0, ge=0, validation_alias="INITIAL_BACKOFF_SECONDS")
    max_backoff_seconds: float = Field(10.0, ge=0, validation_alias="MAX_BACKOFF_SECONDS")
    backoff_multiplier: float = Field(2.0, ge=0, validation_alias="BACKOFF_MULTIPLIER")

    jwt_secret: str = Field("default-secret-change-in-production", validation_alias="JWT_SECRET")
    jwt_expires_in_seconds: int = Field(7 * SECONDS_PER_DAY, validation_alias="JWT_EXPIRES_IN_SECONDS")
    jwt_remember_me_expires_in_seconds: int = Field(
        30 * SECONDS_PER_DAY,
        validation_alias="JWT_REMEMBER_ME_EXPIRES_IN_SECONDS",
    )
    auth_cookie_name: str = Field("token", validation_alias="AUTH_COOKIE_NAME")

    deletion_grace_period_days: int = Field(30, validation_alias="DELETION_GRACE_PERIOD_DAYS")
    account_purge_enabled: bool = Field(True, validation_alias="ACCOUNT_PURGE_ENABLED")
    account_purge_interval_seconds: float = Field(3600.0, validation_alias="ACCOUNT_PURGE_INTERVAL_SECONDS")

    database_backend: str = Field("mongo", validation_alias="DATABASE_BACKEND")

    readiness_ping_timeout_seconds: float = Field(5.0, validation_alias="READINESS_PING_TIMEOUT_SECONDS")
    shutdown_timeout_seconds: float = Field(10.0, validation_alias="SHUTDOWN_TIMEOUT_SECONDS")
