"""Configuration helpers for watcher runtime wiring."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from kvwatch.config.consul import ConsulSettings
from kvwatch.config.external_client import ExternalClientRetrySettings
from kvwatch.config.watch import WatchFailureBackoffSettings, WatchSettings


class Settings(BaseSettings):
    """Watcher runtime configuration resolved from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    service_name: str = Field(default="kvwatch", alias="KVWATCH_SERVICE_NAME")

    # --- Component settings ---
    watch: WatchSettings = Field(default_factory=WatchSettings)
    failure_backoff: WatchFailureBackoffSettings = Field(default_factory=WatchFailureBackoffSettings)
    consul: ConsulSettings = Field(default_factory=ConsulSettings)
    consul_retry: ExternalClientRetrySettings = Field(default_factory=ExternalClientRetrySettings)

    # --- Loader ---
    @classmethod
    def load(cls) -> Settings:
        instance = cls()
        logger = logging.getLogger("kvwatch.settings")
        logger.info("watcher settings loaded: %r", instance)
        return instance


__all__ = ["Settings"]
