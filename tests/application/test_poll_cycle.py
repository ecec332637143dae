from __future__ import annotations

import logging

import pytest

from kvwatch.application.listeners import ListenerRegistry
from kvwatch.application.poll_cycle import PollCycle
from kvwatch.domain.decoder import KeyValueDecoder
from kvwatch.domain.entry import KeyValueEntry, KeyValueListing
from kvwatch.errors import DecodeError, FetchError, WatcherStateError
from kvwatch.infrastructure.observability.reporting import LoggingErrorReporter
from kvwatch.infrastructure.state.snapshot_store import SnapshotStore
from tests.fixtures.fakes import (
    ROOT_PATH,
    ExplodingListener,
    FakeListingClient,
    RecordingErrorReporter,
    RecordingListener,
    entry,
    listing,
)


def _cycle(
    client: FakeListingClient,
    *,
    store: SnapshotStore | None = None,
    listeners: ListenerRegistry | None = None,
    reporter: RecordingErrorReporter | None = None,
    wait_seconds: float | None = None,
) -> PollCycle:
    return PollCycle(
        client=client,
        decoder=KeyValueDecoder(ROOT_PATH),
        store=store if store is not None else SnapshotStore(),
        listeners=listeners if listeners is not None else ListenerRegistry(),
        error_reporter=reporter or RecordingErrorReporter(),
        wait_seconds=wait_seconds,
    )


def test_first_cycle_is_non_blocking_then_long_polls_from_cursor() -> None:
    client = FakeListingClient(
        [listing({"a": "X"}, index=10), listing({"a": "X"}, index=11), listing({"a": "X"}, index=12)]
    )
    cycle = _cycle(client, wait_seconds=5.0)

    cycle.run()
    cycle.run()

    assert [(c.prefix, c.index, c.wait_seconds) for c in client.calls] == [
        (ROOT_PATH, None, None),
        (ROOT_PATH, 10, 5.0),
    ]


def test_cycle_commits_snapshot_before_dispatch() -> None:
    store = SnapshotStore()
    seen: list[tuple[object, object]] = []

    class SnapshotProbe:
        def update_configuration(self, result) -> None:
            seen.append((dict(store.data or {}), store.cursor))

    listeners = ListenerRegistry()
    listeners.add(SnapshotProbe())
    cycle = _cycle(FakeListingClient([listing({"a": "X"}, index=3)]), store=store, listeners=listeners)

    cycle.run()

    assert seen == [({"a": "X"}, 3)]


def test_cursor_is_adopted_even_without_logical_change() -> None:
    store = SnapshotStore()
    cycle = _cycle(
        FakeListingClient([listing({"a": "X"}, index=3), listing({"a": "X"}, index=9)]),
        store=store,
    )

    cycle.run()
    result = cycle.run()

    assert store.cursor == 9
    assert result.incremental is True
    assert not result.has_changes


def test_decode_failure_discards_whole_cycle() -> None:
    store = SnapshotStore()
    listener = RecordingListener()
    listeners = ListenerRegistry()
    listeners.add(listener)
    bad = KeyValueListing(
        entries=(entry("a", "X2"), KeyValueEntry(key="elsewhere/b", value=None)),
        index=20,
    )
    cycle = _cycle(
        FakeListingClient([listing({"a": "X"}, index=10), bad]),
        store=store,
        listeners=listeners,
    )
    cycle.run()
    before = store.current()

    with pytest.raises(DecodeError):
        cycle.run()

    assert store.current() is before
    assert listener.events == 1


def test_client_exceptions_are_wrapped_as_fetch_errors() -> None:
    store = SnapshotStore()
    cycle = _cycle(FakeListingClient([ConnectionError("refused")]), store=store)

    with pytest.raises(FetchError, match="refused") as exc_info:
        cycle.run()

    assert isinstance(exc_info.value.__cause__, ConnectionError)
    assert store.data is None
    assert store.cursor is None


def test_fetch_errors_pass_through_unchanged() -> None:
    error = FetchError("store unavailable")
    cycle = _cycle(FakeListingClient([error]))

    with pytest.raises(FetchError) as exc_info:
        cycle.run()

    assert exc_info.value is error


def test_listener_failures_are_reported_and_isolated() -> None:
    reporter = RecordingErrorReporter()
    store = SnapshotStore()
    listeners = ListenerRegistry()
    listeners.add(ExplodingListener())
    after = RecordingListener()
    listeners.add(after)
    cycle = _cycle(
        FakeListingClient([listing({"a": "X"}, index=4)]),
        store=store,
        listeners=listeners,
        reporter=reporter,
    )

    result = cycle.run()

    assert after.results == [result]
    assert store.cursor == 4
    assert reporter.phases() == ["listener"]
    assert reporter.reports[0].data["cursor"] == 4


def test_cursor_regression_triggers_full_resync() -> None:
    store = SnapshotStore()
    cycle = _cycle(
        FakeListingClient(
            [
                listing({"a": "X", "b": "Y"}, index=100),
                listing({"a": "X", "c": "Z"}, index=5),
            ]
        ),
        store=store,
    )
    cycle.run()

    result = cycle.run()

    assert result.incremental is False
    assert dict(result.added) == {"a": "X", "c": "Z"}
    assert not result.removed
    assert not result.changed
    assert store.cursor == 5


def test_listener_failure_is_logged_with_traceback_once(caplog: pytest.LogCaptureFixture) -> None:
    listeners = ListenerRegistry()
    listeners.add(ExplodingListener())
    cycle = PollCycle(
        client=FakeListingClient([listing({"a": "X"}, index=3)]),
        decoder=KeyValueDecoder(ROOT_PATH),
        store=SnapshotStore(),
        listeners=listeners,
        error_reporter=LoggingErrorReporter(),
        wait_seconds=None,
    )

    with caplog.at_level(logging.DEBUG):
        cycle.run()

    with_traceback = [record for record in caplog.records if record.exc_info]
    assert [record.name for record in with_traceback] == ["kvwatch.errors"]
    assert with_traceback[0].data["phase"] == "listener"


def test_reentrant_run_from_a_listener_is_rejected() -> None:
    reporter = RecordingErrorReporter()
    listeners = ListenerRegistry()
    cycle = _cycle(FakeListingClient([listing({"a": "X"}, index=3)]), listeners=listeners, reporter=reporter)

    class ReentrantListener:
        def update_configuration(self, result) -> None:
            cycle.run()

    listeners.add(ReentrantListener())

    result = cycle.run()

    assert result.cursor == 3
    assert reporter.phases() == ["listener"]
    assert isinstance(reporter.reports[0].error, WatcherStateError)
