"""Single-writer holder for the current snapshot."""

from __future__ import annotations

from collections.abc import Mapping

from kvwatch.domain.snapshot import EMPTY_SNAPSHOT, Snapshot


class SnapshotStore:
    """Holds one immutable ``Snapshot`` replaced by reference assignment.

    Readers never lock: they always see a whole pre- or post-cycle snapshot.
    Only the poll cycle writes.
    """

    def __init__(self, initial: Snapshot = EMPTY_SNAPSHOT) -> None:
        self._snapshot = initial

    def current(self) -> Snapshot:
        return self._snapshot

    def replace(self, snapshot: Snapshot) -> Snapshot:
        """Install ``snapshot`` and return the one it replaced."""

        previous = self._snapshot
        self._snapshot = snapshot
        return previous

    @property
    def data(self) -> Mapping[str, str] | None:
        return self._snapshot.data

    @property
    def cursor(self) -> int | None:
        return self._snapshot.cursor


__all__ = ["SnapshotStore"]
