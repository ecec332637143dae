"""Lifecycle controller that keeps a local snapshot of a watched KV prefix."""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from enum import StrEnum

from kvwatch.application.listeners import ListenerRegistry
from kvwatch.application.poll_cycle import PollCycle
from kvwatch.application.ports.error_reporter import ErrorReporter
from kvwatch.application.ports.listener import UpdateListener
from kvwatch.application.ports.listing_client import KvListingClient
from kvwatch.application.status import StatusProvider, StatusSnapshot
from kvwatch.config.watch import DEFAULT_STOP_TIMEOUT_SECONDS, DEFAULT_WATCH_INTERVAL_SECONDS
from kvwatch.domain.decoder import KeyValueDecoder
from kvwatch.domain.diff import WatchedUpdateResult
from kvwatch.domain.snapshot import Snapshot
from kvwatch.errors import DecodeError, FetchError, WatcherStartupError, WatcherStateError
from kvwatch.infrastructure.observability.reporting import LoggingErrorReporter
from kvwatch.infrastructure.state.snapshot_store import SnapshotStore
from kvwatch.retry_utils import RetryPolicy, backoff_ms
from kvwatch.runtime.base_worker import BaseWorker

DEFAULT_FAILURE_BACKOFF = RetryPolicy(attempts=1, initial_ms=1000, max_ms=30000, jitter=0.2)


class WatcherState(StrEnum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    TERMINATED = "terminated"
    FAILED = "failed"


_FINAL_STATES = frozenset({WatcherState.TERMINATED, WatcherState.FAILED})
_SETTLED_STATES = frozenset(
    {WatcherState.RUNNING, WatcherState.STOPPING, WatcherState.TERMINATED, WatcherState.FAILED}
)


def _failure_phase(exc: BaseException) -> str:
    if isinstance(exc, DecodeError):
        return "decode"
    if isinstance(exc, FetchError):
        return "fetch"
    return "cycle"


class WatchedConfigurationSource(BaseWorker):
    """Watches one key prefix and notifies listeners of every poll result.

    ``start()`` runs the first poll synchronously, so once it returns (or
    ``await_running()`` is satisfied) the snapshot is populated unless the
    store was unreachable. A single background thread then long-polls the
    store; ``run_once()`` triggers one cycle on the caller's thread. Cycles
    never overlap. Listeners run inside the cycle, so calling ``run_once()``
    from a listener raises ``WatcherStateError``.
    """

    worker_name = "kvwatch-poll-loop"
    logger_name = "kvwatch.watcher"

    def __init__(
        self,
        *,
        root_path: str,
        client: KvListingClient,
        watch_interval_seconds: float = DEFAULT_WATCH_INTERVAL_SECONDS,
        blocking: bool = True,
        fail_fast_startup: bool = False,
        max_consecutive_failures: int | None = None,
        failure_backoff: RetryPolicy = DEFAULT_FAILURE_BACKOFF,
        stop_timeout_seconds: float = DEFAULT_STOP_TIMEOUT_SECONDS,
        error_reporter: ErrorReporter | None = None,
        status_provider: StatusProvider | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if watch_interval_seconds <= 0:
            raise ValueError("watch_interval_seconds must be positive")
        if max_consecutive_failures is not None and max_consecutive_failures < 1:
            raise ValueError("max_consecutive_failures must be at least 1")
        super().__init__(poll_interval=watch_interval_seconds)

        self._store = SnapshotStore()
        self._listeners = ListenerRegistry()
        self._error_reporter: ErrorReporter = error_reporter or LoggingErrorReporter()
        self._status = status_provider or StatusProvider()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._cycle = PollCycle(
            client=client,
            decoder=KeyValueDecoder(root_path),
            store=self._store,
            listeners=self._listeners,
            error_reporter=self._error_reporter,
            wait_seconds=watch_interval_seconds if blocking else None,
        )
        self._blocking = blocking
        self._fail_fast_startup = fail_fast_startup
        self._max_consecutive_failures = max_consecutive_failures
        self._failure_backoff = failure_backoff
        self._stop_timeout = stop_timeout_seconds
        self._fetch_failures = 0
        self._cursor_advanced = False
        self._cycle_guard = threading.RLock()

        self._state = WatcherState.IDLE
        self._state_changed = threading.Condition()

    # --- Snapshot accessors ---
    def get_current_data(self) -> Mapping[str, str] | None:
        return self._store.data

    def get_latest_index(self) -> int | None:
        return self._store.cursor

    def current_snapshot(self) -> Snapshot:
        """Return the (mapping, cursor) pair as one consistent value."""
        return self._store.current()

    # --- Listeners ---
    def add_update_listener(self, listener: UpdateListener) -> None:
        self._listeners.add(listener)

    def remove_update_listener(self, listener: UpdateListener) -> bool:
        return self._listeners.remove(listener)

    # --- Lifecycle ---
    @property
    def root_path(self) -> str:
        return self._cycle.root_path

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def status(self) -> StatusSnapshot:
        return self._status.snapshot()

    def start(self) -> None:
        """Run the first poll, then hand polling to the background thread."""

        with self._state_changed:
            if self._state is not WatcherState.IDLE:
                raise WatcherStateError(f"cannot start watcher in state {self._state.value!r}")
            self._set_state(WatcherState.STARTING)

        try:
            self._run_cycle()
        except Exception as exc:
            if self._fail_fast_startup:
                self._transition(WatcherState.STARTING, WatcherState.FAILED)
                self._transition(WatcherState.STOPPING, WatcherState.FAILED)
                raise WatcherStartupError(
                    f"initial poll of {self.root_path!r} failed: {exc}"
                ) from exc
            self._report(exc, phase="startup")

        with self._state_changed:
            if self._state is WatcherState.STOPPING:
                # stop() arrived while the first poll was in flight.
                self._set_state(WatcherState.TERMINATED)
                return
            super().start()
            self._set_state(WatcherState.RUNNING)

        self._logger.info(
            "watcher running",
            extra={
                "data": {
                    "root_path": self.root_path,
                    "cursor": self._store.cursor,
                    "keys": len(self._store.data or {}),
                }
            },
        )

    def stop(self, timeout: float | None = None) -> None:
        """Stop polling; an in-flight cycle finishes and dispatches first."""

        limit = self._stop_timeout if timeout is None else timeout
        with self._state_changed:
            if self._state in _FINAL_STATES:
                return
            if self._state is WatcherState.IDLE:
                self._set_state(WatcherState.TERMINATED)
                return
            self._set_state(WatcherState.STOPPING)

        super().stop(timeout=limit)
        # A joined loop has already settled the state; without a thread the
        # first poll inside start() is still in flight.
        if not self.await_terminated(timeout=limit if self._thread is None else 0):
            self._logger.warning(
                "watcher still finishing an in-flight poll",
                extra={"data": {"root_path": self.root_path, "timeout_s": limit}},
            )

    def await_running(self, timeout: float | None = None) -> bool:
        """Block until startup settles; True if the watcher is running."""

        with self._state_changed:
            self._state_changed.wait_for(lambda: self._state in _SETTLED_STATES, timeout=timeout)
            return self._state is WatcherState.RUNNING

    def await_terminated(self, timeout: float | None = None) -> bool:
        with self._state_changed:
            return self._state_changed.wait_for(lambda: self._state in _FINAL_STATES, timeout=timeout)

    def run_once(self) -> WatchedUpdateResult:
        """Poll once on the calling thread; failures are raised to the caller."""

        if self._state in (WatcherState.STOPPING, *_FINAL_STATES):
            raise WatcherStateError(f"cannot poll watcher in state {self._state.value!r}")
        return self._run_cycle()

    # --- Worker hooks ---
    def _tick(self) -> None:
        previous_cursor = self._store.cursor
        try:
            result = self._run_cycle()
            self._cursor_advanced = result.cursor != previous_cursor
        except Exception as exc:
            self._cursor_advanced = False
            self._report(exc, phase=_failure_phase(exc))
            limit = self._max_consecutive_failures
            if limit is not None and self._fetch_failures >= limit:
                self._logger.error(
                    "giving up after consecutive fetch failures",
                    extra={"data": {"root_path": self.root_path, "failures": self._fetch_failures}},
                )
                self._transition(WatcherState.RUNNING, WatcherState.FAILED)
                self._stop.set()

    def _next_delay(self, elapsed: float) -> float | None:
        failures = self._status.state.consecutive_failures
        if failures:
            return backoff_ms(failures - 1, self._failure_backoff) / 1000
        if self._blocking and self._cursor_advanced:
            # The store reported a change; the next request blocks on the new index.
            return None
        # Consul returned early without a new index, or the client does not block.
        return super()._next_delay(elapsed)

    def _on_exit(self) -> None:
        self._transition(WatcherState.STOPPING, WatcherState.TERMINATED)
        self._logger.info(
            "watcher loop exited",
            extra={"data": {"root_path": self.root_path, "state": self._state.value}},
        )

    # --- Internals ---
    def _run_cycle(self) -> WatchedUpdateResult:
        # Status is recorded under the same guard so it follows commit order.
        with self._cycle_guard:
            try:
                result = self._cycle.run()
            except WatcherStateError:
                raise
            except Exception as exc:
                self._record_failure(exc)
                raise
            self._record_success(result)
            return result

    def _record_success(self, result: WatchedUpdateResult) -> None:
        self._fetch_failures = 0
        status = self._status.state
        status.cycles_completed += 1
        status.consecutive_failures = 0
        status.last_success_at = self._clock()
        status.last_error = None
        status.cursor = result.cursor
        status.key_count = len(result.complete)

    def _record_failure(self, exc: BaseException) -> None:
        if isinstance(exc, FetchError):
            self._fetch_failures += 1
        status = self._status.state
        status.cycles_failed += 1
        status.consecutive_failures += 1
        status.last_failure_at = self._clock()
        status.last_error = f"{type(exc).__name__}: {exc}"

    def _report(self, exc: BaseException, *, phase: str) -> None:
        self._error_reporter.report(
            exc,
            phase=phase,
            data={
                "root_path": self.root_path,
                "cursor": self._store.cursor,
                "consecutive_failures": self._status.state.consecutive_failures,
            },
        )

    def _set_state(self, state: WatcherState) -> None:
        # Caller holds self._state_changed.
        self._state = state
        self._status.state.state = state.value
        self._state_changed.notify_all()

    def _transition(self, expected: WatcherState, new: WatcherState) -> bool:
        with self._state_changed:
            if self._state is not expected:
                return False
            self._set_state(new)
            return True


__all__ = ["DEFAULT_FAILURE_BACKOFF", "WatchedConfigurationSource", "WatcherState"]
