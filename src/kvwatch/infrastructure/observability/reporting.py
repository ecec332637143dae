"""Default error reporter: structured log records."""

from __future__ import annotations

import logging
from collections.abc import Mapping


class LoggingErrorReporter:
    """Reports background failures through the ``kvwatch.errors`` logger."""

    def __init__(self, logger_name: str = "kvwatch.errors") -> None:
        self._logger = logging.getLogger(logger_name)

    def report(
        self,
        error: BaseException,
        *,
        phase: str,
        data: Mapping[str, object] | None = None,
    ) -> None:
        payload: dict[str, object] = {
            "phase": phase,
            "error_type": type(error).__name__,
            "error": str(error),
        }
        if data:
            payload |= dict(data)
        self._logger.error(
            "watch %s failed",
            phase,
            exc_info=(type(error), error, error.__traceback__),
            extra={"data": payload},
        )


__all__ = ["LoggingErrorReporter"]
