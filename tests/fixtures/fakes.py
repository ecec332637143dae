from __future__ import annotations

import base64
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from kvwatch.domain.diff import WatchedUpdateResult
from kvwatch.domain.entry import KeyValueEntry, KeyValueListing

ROOT_PATH = "my-app/config"


def encode(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def entry(key: str, value: str, *, root: str = ROOT_PATH, index: int = 1) -> KeyValueEntry:
    return KeyValueEntry(key=f"{root}/{key}", value=encode(value), create_index=index, modify_index=index)


def listing(values: Mapping[str, str], *, index: int, root: str = ROOT_PATH) -> KeyValueListing:
    return KeyValueListing(entries=tuple(entry(k, v, root=root) for k, v in values.items()), index=index)


@dataclass
class ListCall:
    prefix: str
    index: int | None
    wait_seconds: float | None


class FakeListingClient:
    """Returns scripted listings in order; the last one repeats once exhausted.

    Scripted items that are exceptions are raised instead of returned. With
    ``long_poll=True`` a blocking call that would repeat the last item waits
    up to its ``wait_seconds``, like a query with no change; a ``push`` during
    the wait answers that call with the pushed item.
    """

    def __init__(
        self,
        responses: Iterable[KeyValueListing | Exception] = (),
        *,
        long_poll: bool = False,
    ) -> None:
        self.long_poll = long_poll
        self._responses: list[KeyValueListing | Exception] = list(responses)
        self._lock = threading.Lock()
        self.calls: list[ListCall] = []
        self.called = threading.Event()
        self._pushed = threading.Event()
        self._repeat_served = False

    def push(self, response: KeyValueListing | Exception) -> None:
        with self._lock:
            if self._repeat_served:
                # The repeating item has been observed; the push supersedes it.
                self._responses.clear()
                self._repeat_served = False
            self._responses.append(response)
        self._pushed.set()

    def _next_response(self) -> tuple[KeyValueListing | Exception, bool]:
        if not self._responses:
            raise AssertionError("no scripted response left")
        repeating = len(self._responses) == 1
        response = self._responses[0] if repeating else self._responses.pop(0)
        if repeating:
            self._repeat_served = True
            self._pushed.clear()
        return response, repeating

    def list_values(
        self,
        prefix: str,
        *,
        index: int | None,
        wait_seconds: float | None,
    ) -> KeyValueListing:
        with self._lock:
            self.calls.append(ListCall(prefix=prefix, index=index, wait_seconds=wait_seconds))
            response, repeating = self._next_response()
        self.called.set()
        if self.long_poll and repeating and wait_seconds and index is not None and not isinstance(response, Exception):
            if self._pushed.wait(wait_seconds):
                # A push during the wait answers the blocked call.
                with self._lock:
                    response, _ = self._next_response()
        if isinstance(response, Exception):
            raise response
        return response


@dataclass
class RecordingListener:
    """Collects every result it is notified with."""

    name: str = "recording"
    results: list[WatchedUpdateResult] = field(default_factory=list)
    received: threading.Event = field(default_factory=threading.Event)
    order: list[str] | None = None

    def update_configuration(self, result: WatchedUpdateResult) -> None:
        self.results.append(result)
        if self.order is not None:
            self.order.append(self.name)
        self.received.set()

    @property
    def events(self) -> int:
        return len(self.results)


class ExplodingListener:
    def __init__(self, message: str = "listener exploded") -> None:
        self.message = message
        self.calls = 0

    def update_configuration(self, result: WatchedUpdateResult) -> None:
        self.calls += 1
        raise RuntimeError(self.message)


@dataclass
class ReportedError:
    error: BaseException
    phase: str
    data: dict[str, object]


class RecordingErrorReporter:
    def __init__(self) -> None:
        self.reports: list[ReportedError] = []
        self.reported = threading.Event()

    def report(
        self,
        error: BaseException,
        *,
        phase: str,
        data: Mapping[str, object] | None = None,
    ) -> None:
        self.reports.append(ReportedError(error=error, phase=phase, data=dict(data or {})))
        self.reported.set()

    def phases(self) -> list[str]:
        return [report.phase for report in self.reports]
