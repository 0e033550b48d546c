"""
Configuration settings for the cadence shell.

Uses Pydantic Settings for environment variable management with .env file support.
Every field can be set with a CADENCE_ prefixed variable, e.g.
CADENCE_SCHEDULER_BACKEND=my_scheduler.backend:Backend.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Scheduler
    # ========================================
    scheduler_backend: str | None = Field(
        default=None,
        description="Import path (package.module:attr) of the scheduler backend; "
        "falls back to the 'cadence.schedulers' entry point",
    )

    # ========================================
    # Terminal
    # ========================================
    history_enabled: bool = Field(
        default=True,
        description="Keep a command history between interactive runs",
    )
    history_file: Path = Field(
        default=Path(".cadence_history"),
        description="File used to persist the command history",
    )
    show_banner: bool = Field(
        default=True,
        description="Print the startup banner",
    )

    # ========================================
    # Mantra counter
    # ========================================
    mantra_enabled: bool = Field(
        default=True,
        description="Run the background mantra counter",
    )
    mantra_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between two mantra recitations",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: LogLevel = Field(
        default="WARNING",
        description="Logging verbosity level for stderr",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
