import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    ENVIRONMENT: str = "development"

    # Database
    DATABASE_URL: str = "sqlite:///./events.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: float = 5.0  # seconds to wait for a free connection
    DB_POOL_RECYCLE: int = 300
    DB_STATEMENT_TIMEOUT_MS: int = 30000

    # Redis (Celery broker/backend and health check)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Celery (broker and result backend default to REDIS_URL)
    CELERY_BROKER_URL: str | None = None
    CELERY_RESULT_BACKEND: str | None = None
    CELERY_TASK_TRACK_STARTED: bool = True
    CELERY_PUBLISH_MAX_RETRIES: int = 2
    CELERY_PUBLISH_RETRY_INTERVAL: float = 0.2

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Bounded retries for idempotent reads (stats, upcoming list)
    READ_RETRY_ATTEMPTS: int = 3

    @property
    def celery_broker_url(self) -> str:
        return self.CELERY_BROKER_URL or self.REDIS_URL

    @property
    def celery_result_backend(self) -> str:
        return self.CELERY_RESULT_BACKEND or self.REDIS_URL

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()


def get_settings() -> Settings:
    return settings


def get_redis_url() -> str:
    return settings.REDIS_URL
