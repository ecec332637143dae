"""Base worker abstraction with shared threading lifecycle."""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import ClassVar


class BaseWorker(ABC):
    """Abstract background worker with start/stop lifecycle.

    Subclasses must implement ``_tick()`` which is called repeatedly until
    ``stop()`` is invoked. Optionally set ``poll_interval`` to space ticks
    (useful for polling workers vs long-poll/blocking workers). The wait
    between ticks is interrupted by ``stop()``.
    """

    worker_name: ClassVar[str] = "kvwatch-worker"
    logger_name: ClassVar[str] = "kvwatch.worker"
    default_poll_interval: ClassVar[float | None] = None  # None = no sleep (blocking workers)

    def __init__(self, *, poll_interval: float | None = None) -> None:
        self._poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._logger = logging.getLogger(self.logger_name)

    def start(self) -> None:
        """Start the background worker thread (idempotent)."""

        if self._thread and self._thread.is_alive():
            return

        self._stop.clear()
        self._thread = threading.Thread(target=self._run_loop, name=self.worker_name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the worker to stop and wait for termination."""

        if not self._thread:
            return

        self._stop.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)

    @property
    def running(self) -> bool:
        """Return True if the worker thread is alive."""

        return bool(self._thread and self._thread.is_alive())

    @property
    def poll_interval(self) -> float | None:
        """Return the poll interval (instance override or class default)."""

        return self._poll_interval if self._poll_interval is not None else self.default_poll_interval

    def _run_loop(self) -> None:
        """Main loop that calls tick() until stopped."""

        try:
            while not self._stop.is_set():
                started = time.monotonic()
                try:
                    self._tick()
                except Exception:  # pragma: no cover - unexpected
                    self._logger.exception(
                        "worker tick failed",
                        extra={"data": {"worker": self.worker_name}},
                    )

                delay = self._next_delay(time.monotonic() - started)
                if delay and not self._stop.is_set():
                    self._stop.wait(delay)
        finally:
            self._on_exit()

    def _next_delay(self, elapsed: float) -> float | None:
        """Seconds to wait before the next tick; the interval counts from tick start."""

        interval = self.poll_interval
        if interval is None:
            return None
        return max(0.0, interval - elapsed)

    @abstractmethod
    def _tick(self) -> None:
        """Execute one iteration of the worker's task.

        For blocking workers (poll_interval=None), this method should block
        until work is available or its own bounded wait elapses.

        For polling workers, this method should check for work and return
        quickly; the base class handles waiting between ticks.
        """

    def _on_exit(self) -> None:  # noqa: B027
        """Hook called on the worker thread once the loop has exited."""


__all__ = ["BaseWorker"]
