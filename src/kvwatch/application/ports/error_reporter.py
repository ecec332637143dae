"""Channel for surfacing background failures to operators."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol


class ErrorReporter(Protocol):
    def report(
        self,
        error: BaseException,
        *,
        phase: str,
        data: Mapping[str, object] | None = None,
    ) -> None:
        """Record ``error`` raised during ``phase`` (fetch, decode, listener, ...)."""


__all__ = ["ErrorReporter"]
