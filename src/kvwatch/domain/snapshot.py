"""Immutable (mapping, cursor) pair believed to match the remote namespace."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Snapshot:
    data: Mapping[str, str] | None = None
    cursor: int | None = None

    @property
    def populated(self) -> bool:
        return self.data is not None


EMPTY_SNAPSHOT = Snapshot()


__all__ = ["EMPTY_SNAPSHOT", "Snapshot"]
