"""Observer contract for consumers of watched updates."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from kvwatch.domain.diff import WatchedUpdateResult


@runtime_checkable
class UpdateListener(Protocol):
    def update_configuration(self, result: WatchedUpdateResult) -> None:
        """Receive one poll cycle's result. Return values are ignored."""


__all__ = ["UpdateListener"]
