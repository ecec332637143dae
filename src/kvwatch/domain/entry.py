"""Raw key/value listing records as reported by the remote store."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class KeyValueEntry:
    """One listed key with its wire-encoded value and store metadata."""

    key: str
    value: str | None
    create_index: int = 0
    modify_index: int = 0
    flags: int = 0


@dataclass(frozen=True, slots=True)
class KeyValueListing:
    """Entries under a prefix plus the store index they were read at."""

    entries: tuple[KeyValueEntry, ...]
    index: int


__all__ = ["KeyValueEntry", "KeyValueListing"]
