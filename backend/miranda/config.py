"""
Application configuration
"""
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Miranda"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Database (MongoDB)
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "miranda"

    # Celery broker / result backend
    REDIS_URL: str = "redis://localhost:6379/0"

    # Scoring backend (OpenAI-compatible)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TIMEOUT_SECONDS: float = 60.0

    # Slack digest
    SLACK_WEBHOOK_URL: Optional[str] = None

    # Outbound HTTP
    HTTP_USER_AGENT: str = "Mozilla/5.0 (compatible; MirandaBot/1.0)"
    FEED_FETCH_TIMEOUT_SECONDS: float = 30.0
    ARTICLE_FETCH_TIMEOUT_SECONDS: float = 20.0

    # Scan defaults
    SCAN_DEFAULT_DAYS_BACK: int = 7
    SCAN_DEFAULT_PARALLELISM: int = 3
    SCAN_MAX_PARALLELISM: int = 20

    # Pipeline constants
    UNDATED_ITEM_FALLBACK_LIMIT: int = 10
    EXTRACTED_CONTENT_MAX_CHARS: int = 10000
    WORKER_STAGGER_SECONDS: float = 0.1

    # Watchdog
    WATCHDOG_INTERVAL_SECONDS: int = 30
    WATCHDOG_INIT_TIMEOUT_MINUTES: int = 5
    WATCHDOG_STALL_TIMEOUT_MINUTES: int = 30

    # Periodic jobs
    AUTO_SCAN_CHECK_SECONDS: int = 60
    SLACK_DIGEST_CHECK_SECONDS: int = 300
    SCAN_LOG_RETENTION_DAYS: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
