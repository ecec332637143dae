"""Exception hierarchy shared across the watcher components."""

from __future__ import annotations


class KvWatchError(Exception):
    """Base class for watcher failures."""


class DecodeError(KvWatchError, ValueError):
    """Raised when a listing entry cannot be turned into a logical key/value."""


class KeyOutsidePrefixError(DecodeError):
    """Raised when a listed key is not under the watched root path."""


class ValueEncodingError(DecodeError):
    """Raised when a listed value is not valid base64-encoded UTF-8."""


class FetchError(KvWatchError):
    """Raised when the remote store could not be listed."""


class WatcherStateError(KvWatchError, RuntimeError):
    """Raised when a lifecycle operation is not allowed in the current state."""


class WatcherStartupError(KvWatchError):
    """Raised when the first poll fails and startup is configured to fail fast."""


__all__ = [
    "KvWatchError",
    "DecodeError",
    "KeyOutsidePrefixError",
    "ValueEncodingError",
    "FetchError",
    "WatcherStateError",
    "WatcherStartupError",
]
