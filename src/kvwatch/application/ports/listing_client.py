"""Port for listing a key prefix in the remote coordination store."""

from __future__ import annotations

from typing import Protocol

from kvwatch.domain.entry import KeyValueListing


class KvListingClient(Protocol):
    """Remote store client capable of (optionally blocking) prefix listings."""

    def list_values(
        self,
        prefix: str,
        *,
        index: int | None,
        wait_seconds: float | None,
    ) -> KeyValueListing:
        """Return every entry under ``prefix`` and the store's current index.

        When ``index`` and ``wait_seconds`` are both given the call may block
        until the store reports a change past ``index`` or the wait elapses.
        Failures surface as ``FetchError`` (or any exception, which callers
        treat the same way).
        """


__all__ = ["KvListingClient"]
