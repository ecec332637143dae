"""Watch loop configuration."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kvwatch.retry_utils import RetryPolicy

DEFAULT_WATCH_INTERVAL_SECONDS = 10.0
DEFAULT_STOP_TIMEOUT_SECONDS = 30.0


class WatchSettings(BaseSettings):
    """Which prefix to watch and how the poll loop behaves."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    root_path: str = Field(..., alias="KVWATCH_ROOT_PATH")
    watch_interval_seconds: float = Field(
        default=DEFAULT_WATCH_INTERVAL_SECONDS,
        alias="KVWATCH_WATCH_INTERVAL_SECONDS",
        gt=0,
    )
    blocking: bool = Field(default=True, alias="KVWATCH_BLOCKING")
    fail_fast_startup: bool = Field(default=False, alias="KVWATCH_FAIL_FAST_STARTUP")
    max_consecutive_failures: int | None = Field(
        default=None,
        alias="KVWATCH_MAX_CONSECUTIVE_FAILURES",
        ge=1,
    )
    stop_timeout_seconds: float = Field(
        default=DEFAULT_STOP_TIMEOUT_SECONDS,
        alias="KVWATCH_STOP_TIMEOUT_SECONDS",
        gt=0,
    )

    @field_validator("root_path")
    @classmethod
    def _normalize_root_path(cls, value: str) -> str:
        normalized = value.strip().rstrip("/")
        if not normalized:
            raise ValueError("KVWATCH_ROOT_PATH must name a non-empty key prefix")
        return normalized


class WatchFailureBackoffSettings(BaseSettings):
    """Delay between background cycles after consecutive failures."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    initial_ms: int = Field(default=1000, alias="KVWATCH_FAILURE_BACKOFF_INITIAL_MS", ge=0)
    max_ms: int = Field(default=30000, alias="KVWATCH_FAILURE_BACKOFF_MAX_MS", ge=0)
    jitter: float = Field(default=0.2, alias="KVWATCH_FAILURE_BACKOFF_JITTER", ge=0.0, le=1.0)

    @property
    def retry_policy(self) -> RetryPolicy:
        # attempts is unused for loop backoff: the loop retries until stopped.
        return RetryPolicy(attempts=1, initial_ms=self.initial_ms, max_ms=self.max_ms, jitter=self.jitter)


__all__ = [
    "DEFAULT_STOP_TIMEOUT_SECONDS",
    "DEFAULT_WATCH_INTERVAL_SECONDS",
    "WatchFailureBackoffSettings",
    "WatchSettings",
]
