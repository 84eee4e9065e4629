"""
Application configuration.
Values come from environment variables, then a local .env file, so the
service runs against SQLite out of the box and against Postgres in
production by setting DATABASE_URL.
"""
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = "sqlite+aiosqlite:///./leadflow.db"
    SQL_ECHO: bool = False
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:8080"

    # Conversational intake (OpenAI-compatible chat completions gateway)
    AI_GATEWAY_URL: str = ""
    AI_API_KEY: str = ""
    AI_MODEL: str = "google/gemini-2.5-flash"
    AI_TIMEOUT_SECONDS: float = 30.0

    # Outbound event webhook for the notification dispatcher
    NOTIFICATION_WEBHOOK_URL: str = ""

    # Request quota
    OPEN_REQUEST_LIMIT: int = 2
    MONTHLY_INCLUDED_REQUESTS: int = 2

    # Channel pricing
    CHECKUP_PRICE_CENTS: int = 5000

    # Attachments are uploaded before the request is written; this only bounds the reference
    ATTACHMENT_MAX_BYTES: int = 10 * 1024 * 1024

    class Config:
        env_file = ".env"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def ai_configured(self) -> bool:
        return bool(self.AI_GATEWAY_URL and self.AI_API_KEY)


settings = Settings()

if not settings.ai_configured:
    logger.info("AI gateway not configured; conversational intake will report unavailable.")
