"""
Configuration for llmcourse.

Values come from LLMCOURSE_* environment variables, optionally seeded from a
.env file in the working directory.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from llmcourse.schemas import PROGRESS_STORAGE_KEY


DEFAULT_PROGRESS_DIR = Path.home() / ".llmcourse"
DEFAULT_PROGRESS_DB = DEFAULT_PROGRESS_DIR / "progress.db"
DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024  # 5 MiB


class Settings(BaseSettings):
    # Storage
    progress_db: Path = DEFAULT_PROGRESS_DB
    storage_key: str = PROGRESS_STORAGE_KEY
    quota_bytes: Optional[int] = DEFAULT_QUOTA_BYTES  # 0 disables the limit

    # Logging
    log_level: str = "INFO"

    # Metadata overrides
    curriculum_path: Optional[Path] = Field(default=None, validation_alias="LLMCOURSE_CURRICULUM")
    achievements_path: Optional[Path] = Field(default=None, validation_alias="LLMCOURSE_ACHIEVEMENTS")

    model_config = SettingsConfigDict(
        env_prefix="LLMCOURSE_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @field_validator("progress_db", "curriculum_path", "achievements_path")
    @classmethod
    def expand_user(cls, v: Optional[Path]) -> Optional[Path]:
        return v.expanduser() if v is not None else None

    @field_validator("quota_bytes")
    @classmethod
    def zero_disables_quota(cls, v: Optional[int]) -> Optional[int]:
        return v if v and v > 0 else None

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def open_default_storage(settings: Optional[Settings] = None):
    """ProgressStorage on the configured SQLite file."""
    from llmcourse.classroom import ProgressStorage, SQLiteKeyValueStore

    settings = settings or get_settings()
    store = SQLiteKeyValueStore(settings.progress_db, quota_bytes=settings.quota_bytes)
    return ProgressStorage(store, key=settings.storage_key)
