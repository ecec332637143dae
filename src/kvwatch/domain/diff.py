"""Semantic difference between two consecutive logical mappings."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

_EMPTY: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class WatchedUpdateResult:
    """Outcome of one successful poll cycle.

    ``complete`` is the new mapping. ``added`` and ``changed`` report new
    values, ``removed`` reports the values that were dropped. The three delta
    maps never share a key. ``incremental`` is False only for the first
    result computed against an empty snapshot.
    """

    complete: Mapping[str, str]
    added: Mapping[str, str]
    changed: Mapping[str, str]
    removed: Mapping[str, str]
    incremental: bool
    cursor: int | None = None

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.changed or self.removed)


def compute_update(
    previous: Mapping[str, str] | None,
    current: Mapping[str, str],
    *,
    incremental: bool,
    cursor: int | None = None,
) -> WatchedUpdateResult:
    """Diff ``current`` against ``previous`` (``None`` counts as empty)."""

    before = previous if previous is not None else _EMPTY
    added: dict[str, str] = {}
    changed: dict[str, str] = {}
    for key, value in current.items():
        if key not in before:
            added[key] = value
        elif before[key] != value:
            changed[key] = value
    removed = {key: value for key, value in before.items() if key not in current}

    return WatchedUpdateResult(
        complete=MappingProxyType(dict(current)),
        added=MappingProxyType(added),
        changed=MappingProxyType(changed),
        removed=MappingProxyType(removed),
        incremental=incremental,
        cursor=cursor,
    )


__all__ = ["WatchedUpdateResult", "compute_update"]
