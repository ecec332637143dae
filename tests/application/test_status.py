from __future__ import annotations

from datetime import UTC, datetime

from kvwatch.application.status import StatusProvider


def test_snapshot_renders_timestamps_and_staleness() -> None:
    provider = StatusProvider()
    provider.state.state = "running"
    provider.state.cycles_completed = 3
    provider.state.last_success_at = datetime(2025, 1, 1, 12, tzinfo=UTC)
    provider.state.consecutive_failures = 2
    provider.state.last_error = "FetchError: store unavailable"

    snapshot = provider.snapshot()

    assert snapshot["state"] == "running"
    assert snapshot["last_success_at"] == "2025-01-01T12:00:00+00:00"
    assert snapshot["last_failure_at"] is None
    assert snapshot["stale"] is True


def test_fresh_provider_is_idle_and_not_stale() -> None:
    snapshot = StatusProvider().snapshot()

    assert snapshot["state"] == "idle"
    assert snapshot["cursor"] is None
    assert snapshot["stale"] is False
