"""Ordered listener registry with per-listener failure isolation."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from kvwatch.application.ports.listener import UpdateListener
from kvwatch.domain.diff import WatchedUpdateResult

logger = logging.getLogger("kvwatch.listeners")


@dataclass(frozen=True)
class ListenerFailure:
    listener: UpdateListener
    error: Exception


class CallbackListener:
    """Adapts a plain callable to the ``UpdateListener`` contract."""

    def __init__(self, callback: Callable[[WatchedUpdateResult], object]) -> None:
        self._callback = callback

    def update_configuration(self, result: WatchedUpdateResult) -> None:
        self._callback(result)

    def __repr__(self) -> str:
        name = getattr(self._callback, "__qualname__", type(self._callback).__name__)
        return f"CallbackListener({name})"


class ListenerRegistry:
    """Copy-on-write list of listeners notified in registration order.

    Registering the same listener twice yields two notifications per result.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: tuple[UpdateListener, ...] = ()

    def add(self, listener: UpdateListener) -> None:
        with self._lock:
            self._listeners = (*self._listeners, listener)

    def remove(self, listener: UpdateListener) -> bool:
        """Drop the earliest registration of ``listener``; False if absent."""

        with self._lock:
            listeners = list(self._listeners)
            for idx, existing in enumerate(listeners):
                if existing is listener:
                    del listeners[idx]
                    self._listeners = tuple(listeners)
                    return True
        return False

    def __len__(self) -> int:
        return len(self._listeners)

    def dispatch(self, result: WatchedUpdateResult) -> list[ListenerFailure]:
        """Notify every listener; failures are collected, never raised."""

        failures: list[ListenerFailure] = []
        for listener in self._listeners:
            try:
                listener.update_configuration(result)
            except Exception as exc:
                logger.debug(
                    "listener failed",
                    extra={"data": {"listener": repr(listener), "cursor": result.cursor, "error": str(exc)}},
                )
                failures.append(ListenerFailure(listener=listener, error=exc))
        return failures


__all__ = ["CallbackListener", "ListenerFailure", "ListenerRegistry"]
