import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "hoteltax"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DATABASE_DSN: str = "sqlite:////tmp/hoteltax.db"
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Authentication
    AUTH_REQUIRED: bool = True
    AUTH_JWT_SECRET: str = "change-me"
    AUTH_JWT_ALGORITHM: str = "HS256"
    API_KEY_PREFIX: str = "htx_"

    # Establishment defaults (Congolese francs, Kinshasa local time)
    DEFAULT_CURRENCY: str = "CDF"
    DEFAULT_TIMEZONE: str = "Africa/Kinshasa"

    # Idempotency records older than this are purged by the worker
    IDEMPOTENCY_TTL_HOURS: int = 24

    # Rows fetched per round-trip when streaming report aggregation
    REPORT_STREAM_BATCH_SIZE: int = 500

    @property
    def version(self) -> str:
        from hoteltax import __version__

        return __version__


settings = Settings()


def configure_logging() -> None:
    """Apply LOG_LEVEL to the root logger."""
    level = logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
