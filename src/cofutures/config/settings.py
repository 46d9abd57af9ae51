"""Configuration settings using Pydantic Settings.

Provides typed runtime configuration with environment variable support.

Usage:
    from cofutures.config import RuntimeSettings

    # Load from environment variables (COFUTURES_*)
    settings = RuntimeSettings()

    # Or override with explicit values
    settings = RuntimeSettings(default_concurrency=8, reject_empty_race=True)

    scheduler = Scheduler(config=SchedulerConfig.from_settings(settings))
    policy = RetryPolicy.from_settings(settings)
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RuntimeSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for the scheduler, retry defaults and logging.

    Attributes:
        report_unhandled_rejections: Log a warning for rejections nobody handled.
        reject_empty_race: Make ``race([])`` reject instead of never settling.
        default_concurrency: Limit used by ``run_bounded`` when none is given.
        retry_max_attempts: Default maximum attempts for retry policies.
        retry_backoff: Default backoff strategy (none, linear, exponential).
        retry_base_delay: Default base delay in seconds.
        retry_max_delay: Default cap on a single wait (None for no cap).
        log_level: Level for ``configure_logging``.
        log_json: Render logs as JSON lines.

    Environment Variables:
        COFUTURES_REPORT_UNHANDLED_REJECTIONS
        COFUTURES_REJECT_EMPTY_RACE
        COFUTURES_DEFAULT_CONCURRENCY
        COFUTURES_RETRY_MAX_ATTEMPTS
        COFUTURES_RETRY_BACKOFF
        COFUTURES_RETRY_BASE_DELAY
        COFUTURES_RETRY_MAX_DELAY
        COFUTURES_LOG_LEVEL
        COFUTURES_LOG_JSON
    """

    model_config = SettingsConfigDict(
        env_prefix="COFUTURES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    report_unhandled_rejections: bool = True
    reject_empty_race: bool = False
    default_concurrency: int = Field(default=4, ge=1)
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_backoff: Literal["none", "linear", "exponential"] = "exponential"
    retry_base_delay: float = Field(default=0.1, ge=0)
    retry_max_delay: float | None = Field(default=None, ge=0)
    log_level: str = "info"
    log_json: bool = False
