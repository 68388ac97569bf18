"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./mission_control.db"

    # API
    API_KEY: Optional[str] = None
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Dashboard session
    SESSION_SECRET: str = "change-me"
    SESSION_COOKIE_NAME: str = "hq_session"
    SESSION_MAX_AGE_DAYS: int = 30
    DASHBOARD_PASSWORD: Optional[str] = None

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Market data
    PRICE_CACHE_TTL_SECONDS: int = 300
    PRICE_QUOTE_URL: str = "https://query1.finance.yahoo.com/v8/finance/chart"

    # Outbound integrations
    HEALTH_CHECK_TIMEOUT_SECONDS: float = 10.0
    RESEARCH_GATEWAY_URL: str = "https://gateway.claudiusinc.com"
    RESEARCH_GATEWAY_TOKEN: Optional[str] = None
    PAGE_REVALIDATE_URL: Optional[str] = None

    # Create missing tables at startup (alembic remains the migration path)
    AUTO_CREATE_TABLES: bool = True

    # Login throttling
    RATE_LIMIT_REQUESTS: int = 60
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
