"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    CONFIG_PATH: str = Field(default="app_config.json")

    FREE_QUESTION_CAP: int = 3
    DEFAULT_QUESTION_CAP: int = 10
    QUESTION_TIME_LIMIT: int = 90

    SUMMARY_MAX_BYTES: int = 1024
    SUMMARY_KEEP_ENTRIES: int = 4

    STAGE_TARGET_MIN: int = 5
    STAGE_TARGET_MAX: int = 8

    RESUME_WINDOW_HOURS: int = 24
    AUTO_SAVE_SECONDS: int = 10
    SUBMISSION_LEASE_SECONDS: int = 120

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
