"""Application configuration management."""
from pydantic import model_validator, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from datetime import datetime, UTC
from functools import lru_cache
from sqlalchemy.engine.url import make_url, URL
from typing import Optional
import logging

SQLITE_LOCAL_URL = "sqlite+aiosqlite:///./quests.db"

DEFAULT_CORS_ORIGIN_REGEX = (
    r"^https?://([a-z0-9-]+\.)*(galxe\.com|vercel\.app|infiniteseas\.io|localhost)(:\d+)?$"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = SQLITE_LOCAL_URL
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Application
    environment: str = "development"
    cors_allowed_origin_regex: str = DEFAULT_CORS_ORIGIN_REGEX

    # Indexer
    indexer_base_url: str = ""
    indexer_timeout_seconds: int = 30

    # Quest windows
    quest_epoch_start: datetime = datetime(2024, 8, 8, tzinfo=UTC)  # Launch of the newbie quests
    daily_reset_hour: int = 0
    daily_reset_minute: int = 1

    # Scheduling
    evaluation_enabled: bool = True
    evaluation_interval_minutes: int = 30
    evaluation_offset_minutes: int = 2  # Runs at :02 and :32 with the default interval
    daily_reset_enabled: bool = True

    @field_validator("indexer_base_url", mode="before")
    @classmethod
    def strip_indexer_url(cls, value):
        """Drop trailing slashes so endpoint paths can be appended directly."""
        if value is None:
            return ""
        return str(value).strip().rstrip("/")

    @field_validator("quest_epoch_start", mode="after")
    @classmethod
    def epoch_is_utc(cls, value: datetime) -> datetime:
        """Treat a naive epoch start as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @model_validator(mode="after")
    def validate_all_config(self):
        """Validate scheduling configuration and normalize Postgres URLs."""
        logger = logging.getLogger(__name__)

        if not 0 <= self.daily_reset_hour <= 23:
            raise ValueError("daily_reset_hour must be between 0 and 23")

        if not 0 <= self.daily_reset_minute <= 59:
            raise ValueError("daily_reset_minute must be between 0 and 59")

        if self.evaluation_interval_minutes < 1 or self.evaluation_interval_minutes > 1440:
            raise ValueError("evaluation_interval_minutes must be between 1 and 1440 (24 hours)")

        if not 0 <= self.evaluation_offset_minutes < self.evaluation_interval_minutes:
            raise ValueError("evaluation_offset_minutes must be smaller than evaluation_interval_minutes")

        if self.indexer_timeout_seconds < 1:
            raise ValueError("indexer_timeout_seconds must be at least 1 second")

        # Database URL normalization
        url = self.database_url
        if not url:
            logger.warning("Empty DATABASE_URL, using SQLite fallback")
            self.database_url = SQLITE_LOCAL_URL
            return self

        parsed: Optional[URL] = None
        try:
            parsed = make_url(url)
        except Exception as e:  # pragma: no cover
            logger.error(f"Failed to parse DATABASE_URL: {e}")
            logger.warning("Invalid DATABASE_URL; falling back to default sqlite database.")
            self.database_url = SQLITE_LOCAL_URL
            return self

        drivername = parsed.drivername
        if drivername.startswith("postgres") and "+asyncpg" not in drivername:
            old_drivername = drivername
            parsed = parsed.set(drivername="postgresql+asyncpg")
            logger.info(f"Driver normalized: {old_drivername} -> {parsed.drivername}")

        # Use render_as_string to properly re-encode special characters in password
        self.database_url = parsed.render_as_string(hide_password=False)
        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
