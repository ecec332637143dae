"""One fetch -> decode -> diff -> commit -> dispatch cycle."""

from __future__ import annotations

import logging
import threading
import time

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

from kvwatch.application.listeners import ListenerRegistry
from kvwatch.application.ports.error_reporter import ErrorReporter
from kvwatch.application.ports.listing_client import KvListingClient
from kvwatch.domain.decoder import KeyValueDecoder
from kvwatch.domain.diff import WatchedUpdateResult, compute_update
from kvwatch.domain.entry import KeyValueListing
from kvwatch.domain.snapshot import Snapshot
from kvwatch.errors import FetchError, WatcherStateError
from kvwatch.infrastructure.state.snapshot_store import SnapshotStore

logger = logging.getLogger("kvwatch.poll_cycle")


class PollCycle:
    """Runs poll cycles against one watched root, never two at once.

    A cycle either commits a new snapshot and dispatches its result, or
    raises and leaves the store untouched.
    """

    def __init__(
        self,
        *,
        client: KvListingClient,
        decoder: KeyValueDecoder,
        store: SnapshotStore,
        listeners: ListenerRegistry,
        error_reporter: ErrorReporter,
        wait_seconds: float | None,
    ) -> None:
        self._client = client
        self._decoder = decoder
        self._store = store
        self._listeners = listeners
        self._error_reporter = error_reporter
        self._wait_seconds = wait_seconds
        self._lock = threading.Lock()
        self._owner: int | None = None

    @property
    def root_path(self) -> str:
        return self._decoder.root_path

    def run(self) -> WatchedUpdateResult:
        if self._owner == threading.get_ident():
            raise WatcherStateError("poll cycle re-entered from a listener on the polling thread")
        with self._lock:
            self._owner = threading.get_ident()
            try:
                return self._run_locked()
            finally:
                self._owner = None

    def _run_locked(self) -> WatchedUpdateResult:
        tracer = trace.get_tracer("kvwatch.poll_cycle")
        with tracer.start_as_current_span(
            "kvwatch.poll_cycle",
            kind=SpanKind.CLIENT,
            attributes={"kvwatch.root_path": self.root_path},
        ) as span:
            previous = self._store.current()
            if previous.cursor is not None:
                span.set_attribute("kvwatch.cursor", previous.cursor)
            start = time.perf_counter()
            try:
                listing = self._fetch(previous)
                mapping = self._decoder.decode(listing.entries)
            except Exception as exc:
                span.record_exception(exc)
                span.set_status(Status(StatusCode.ERROR, str(exc)))
                raise

            result = self._commit(previous, listing, mapping)
            span.set_attributes(
                {
                    "kvwatch.new_cursor": listing.index,
                    "kvwatch.incremental": result.incremental,
                    "kvwatch.added": len(result.added),
                    "kvwatch.changed": len(result.changed),
                    "kvwatch.removed": len(result.removed),
                }
            )
            logger.debug(
                "poll cycle committed",
                extra={
                    "data": {
                        "root_path": self.root_path,
                        "cursor": listing.index,
                        "keys": len(result.complete),
                        "added": len(result.added),
                        "changed": len(result.changed),
                        "removed": len(result.removed),
                        "incremental": result.incremental,
                        "elapsed_ms": round((time.perf_counter() - start) * 1000, 2),
                    }
                },
            )
            self._dispatch(result)
            return result

    def _fetch(self, previous: Snapshot) -> KeyValueListing:
        wait = self._wait_seconds if previous.cursor is not None else None
        try:
            return self._client.list_values(
                self.root_path,
                index=previous.cursor,
                wait_seconds=wait,
            )
        except FetchError:
            raise
        except Exception as exc:
            raise FetchError(f"listing {self.root_path!r} failed: {exc}") from exc

    def _commit(
        self,
        previous: Snapshot,
        listing: KeyValueListing,
        mapping: dict[str, str],
    ) -> WatchedUpdateResult:
        baseline = previous.data
        incremental = previous.populated
        if previous.cursor is not None and listing.index < previous.cursor:
            # Store index went backwards (snapshot restore or leader reset).
            logger.warning(
                "remote index moved backwards; resynchronizing",
                extra={
                    "data": {
                        "root_path": self.root_path,
                        "previous_cursor": previous.cursor,
                        "cursor": listing.index,
                    }
                },
            )
            baseline = None
            incremental = False

        result = compute_update(
            baseline,
            mapping,
            incremental=incremental,
            cursor=listing.index,
        )
        self._store.replace(Snapshot(data=result.complete, cursor=listing.index))
        return result

    def _dispatch(self, result: WatchedUpdateResult) -> None:
        for failure in self._listeners.dispatch(result):
            self._error_reporter.report(
                failure.error,
                phase="listener",
                data={"listener": repr(failure.listener), "cursor": result.cursor},
            )


__all__ = ["PollCycle"]
