"""Lightweight runtime status for the watcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TypedDict


@dataclass
class WatchStatus:
    state: str = "idle"
    cycles_completed: int = 0
    cycles_failed: int = 0
    consecutive_failures: int = 0
    last_success_at: datetime | None = None
    last_failure_at: datetime | None = None
    last_error: str | None = None
    cursor: int | None = None
    key_count: int = 0


class StatusSnapshot(TypedDict):
    state: str
    cycles_completed: int
    cycles_failed: int
    consecutive_failures: int
    last_success_at: str | None
    last_failure_at: str | None
    last_error: str | None
    cursor: int | None
    key_count: int
    stale: bool


@dataclass(slots=True)
class StatusProvider:
    """Tracks watcher progress for health checks and inspection."""

    state: WatchStatus = field(default_factory=WatchStatus)

    def snapshot(self) -> StatusSnapshot:
        return {
            "state": self.state.state,
            "cycles_completed": self.state.cycles_completed,
            "cycles_failed": self.state.cycles_failed,
            "consecutive_failures": self.state.consecutive_failures,
            "last_success_at": self._iso(self.state.last_success_at),
            "last_failure_at": self._iso(self.state.last_failure_at),
            "last_error": self.state.last_error,
            "cursor": self.state.cursor,
            "key_count": self.state.key_count,
            # Serving the last good snapshot while the store is failing.
            "stale": self.state.consecutive_failures > 0,
        }

    @staticmethod
    def _iso(value: datetime | None) -> str | None:
        return value.isoformat() if value else None


__all__ = ["StatusProvider", "StatusSnapshot", "WatchStatus"]
