"""Turn raw listing entries into a relative-key -> string mapping."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterable

from kvwatch.domain.entry import KeyValueEntry
from kvwatch.errors import KeyOutsidePrefixError, ValueEncodingError

DEFAULT_SEPARATOR = "/"


class KeyValueDecoder:
    """Strips the watched root path from keys and decodes base64 values."""

    def __init__(self, root_path: str, *, separator: str = DEFAULT_SEPARATOR) -> None:
        if not root_path:
            raise ValueError("root_path must not be empty")
        if len(separator) != 1:
            raise ValueError("separator must be a single character")
        self._root_path = root_path
        self._prefix = f"{root_path}{separator}"

    @property
    def root_path(self) -> str:
        return self._root_path

    def relative_key(self, raw_key: str) -> str:
        if not raw_key.startswith(self._prefix):
            raise KeyOutsidePrefixError(
                f"key {raw_key!r} is not under watched root {self._root_path!r}"
            )
        return raw_key[len(self._prefix) :]

    @staticmethod
    def decode_value(raw_value: str | None) -> str:
        """Decode a base64 wire value; trailing whitespace is dropped."""

        if raw_value is None:
            return ""
        try:
            decoded = base64.b64decode(raw_value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueEncodingError(f"value is not valid base64: {exc}") from exc
        try:
            text = decoded.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueEncodingError(f"value is not valid utf-8: {exc}") from exc
        return text.rstrip()

    def decode(self, entries: Iterable[KeyValueEntry]) -> dict[str, str]:
        """Decode every entry or raise on the first malformed one.

        The folder marker for the root itself (``root/``) has an empty relative
        key and is skipped.
        """

        mapping: dict[str, str] = {}
        for entry in entries:
            key = self.relative_key(entry.key)
            if not key:
                continue
            mapping[key] = self.decode_value(entry.value)
        return mapping


__all__ = ["DEFAULT_SEPARATOR", "KeyValueDecoder"]
