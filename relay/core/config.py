"""
Environment configuration — single source of truth for all settings.

Uses pydantic-settings for type-safe config with .env file support.
All values have sensible defaults for local development.

Usage:
    from relay.core.config import get_settings
    settings = get_settings()
    print(settings.DATABASE_URL)
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings loaded from environment variables or .env file.

    Precedence: env var > .env file > default value
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # ── Application ──
    APP_NAME: str = "Telegram Relay"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | staging | production
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR | CRITICAL

    # ── Server ──
    HOST: str = "127.0.0.1"
    PORT: int = 8080
    RELOAD: bool = False

    # ── CORS ──
    CORS_ORIGINS: List[str] = []
    CORS_ALLOW_ALL: bool = False

    # ── Database ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/relay.db"
    DATABASE_ECHO: bool = False  # log SQL queries

    # ── Telegram ──
    TELEGRAM_BOT_TOKEN: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("TELEGRAM_BOT_TOKEN", "TELOXIDE_TOKEN"),
    )
    TELEGRAM_API_BASE_URL: str = "https://api.telegram.org"
    TELEGRAM_SEND_TIMEOUT: float = 10.0  # seconds, per delivery
    TELEGRAM_POLL_TIMEOUT: int = 30  # getUpdates long-poll, seconds
    BOT_ENABLED: bool = True

    # ── Broadcasting ──
    DELIVERY_PROVIDER: str = "telegram"  # telegram | simulation
    DISPATCH_MAX_CONCURRENCY: int = 50  # 0 = unbounded
    MESSAGE_MAX_LENGTH: int = 1000

    # ── Auth ──
    SUPER_SECRET_KEY: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def telegram_configured(self) -> bool:
        return bool(self.TELEGRAM_BOT_TOKEN)


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
