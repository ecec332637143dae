"""Consul HTTP API endpoint settings."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONSUL_HTTP_ADDR = "http://127.0.0.1:8500"


class ConsulSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    http_addr: str = Field(default=DEFAULT_CONSUL_HTTP_ADDR, alias="CONSUL_HTTP_ADDR")
    datacenter: str | None = Field(default=None, alias="CONSUL_DATACENTER")
    timeout_seconds: float = Field(default=10.0, alias="CONSUL_HTTP_TIMEOUT_SECONDS", gt=0)

    @property
    def base_url(self) -> str:
        addr = self.http_addr.strip()
        if "://" not in addr:
            addr = f"http://{addr}"
        return addr.rstrip("/")


__all__ = ["DEFAULT_CONSUL_HTTP_ADDR", "ConsulSettings"]
