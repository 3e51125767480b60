"""
Application settings for the task tracker.

Values come from environment variables prefixed with ``TRACKER_`` or from a
local ``.env`` file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRACKER_",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "Task Tracker"
    debug: bool = False
    log_level: str | None = None
    json_logs: bool = False

    # CSV file backing the store; None keeps everything in memory
    data_file: Path | None = None
    datetime_format: str = "%d.%m.%Y %H:%M"


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
