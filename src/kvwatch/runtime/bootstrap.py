"""Wire settings into a Consul client and a watcher."""

from __future__ import annotations

from kvwatch.application.ports.error_reporter import ErrorReporter
from kvwatch.application.ports.listing_client import KvListingClient
from kvwatch.application.status import StatusProvider
from kvwatch.infrastructure.consul.client import HttpConsulKvClient
from kvwatch.runtime.settings import Settings
from kvwatch.runtime.watcher import WatchedConfigurationSource


def build_consul_client(settings: Settings) -> HttpConsulKvClient:
    return HttpConsulKvClient(
        base_url=settings.consul.base_url,
        datacenter=settings.consul.datacenter,
        timeout_seconds=settings.consul.timeout_seconds,
        retry_policy=settings.consul_retry.retry_policy,
    )


def create_watcher(
    settings: Settings,
    *,
    client: KvListingClient | None = None,
    error_reporter: ErrorReporter | None = None,
    status_provider: StatusProvider | None = None,
) -> WatchedConfigurationSource:
    """Factory function to create a watcher with injected dependencies."""
    watch = settings.watch
    return WatchedConfigurationSource(
        root_path=watch.root_path,
        client=client or build_consul_client(settings),
        watch_interval_seconds=watch.watch_interval_seconds,
        blocking=watch.blocking,
        fail_fast_startup=watch.fail_fast_startup,
        max_consecutive_failures=watch.max_consecutive_failures,
        failure_backoff=settings.failure_backoff.retry_policy,
        stop_timeout_seconds=watch.stop_timeout_seconds,
        error_reporter=error_reporter,
        status_provider=status_provider,
    )


__all__ = ["build_consul_client", "create_watcher"]
