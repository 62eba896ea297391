from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300

    REDIS_URL: str = "redis://localhost:6379/0"

    CHANGE_FEED_ENABLED: bool = True
    CHANGE_FEED_CHANNEL: str = "relay.changes"
    CHANGE_FEED_RETRY_SECONDS: float = 5.0
    MESSAGES_TABLE: str = "messages"

    DEFAULT_RECIPIENT_ID: str = "bot"

    CORS_ORIGINS: list[str] = ["*"]

    HEARTBEAT_INTERVAL_SECONDS: float = 30.0
    SEND_TIMEOUT_SECONDS: float = 5.0
    SSE_QUEUE_SIZE: int = 100

    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
