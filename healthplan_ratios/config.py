"""
Application configuration using pydantic-settings.

Loads configuration from environment variables with sensible defaults.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database (SQLite for local dev, PostgreSQL for production)
    database_url: str = "sqlite:///./healthplan_ratios.db"

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # Operator history lookback: most recent candidate quarter and how many to visit
    history_latest_year: int = 2024
    history_latest_quarter: int = Field(4, ge=1, le=4)
    history_lookback: int = Field(5, ge=1)

    # Per-operator units run at once when processing a period (1 = sequential)
    period_max_concurrency: int = Field(1, ge=1)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
