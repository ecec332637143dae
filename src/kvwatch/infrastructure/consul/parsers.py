"""Parsing helpers for Consul KV HTTP payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from kvwatch.domain.entry import KeyValueEntry


class _KvPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    key: str = Field(alias="Key")
    value: str | None = Field(default=None, alias="Value")
    create_index: int = Field(default=0, alias="CreateIndex")
    modify_index: int = Field(default=0, alias="ModifyIndex")
    flags: int = Field(default=0, alias="Flags")


_KV_LIST_ADAPTER = TypeAdapter(list[_KvPayload])


def parse_kv_entries(payload: object) -> tuple[KeyValueEntry, ...]:
    """Normalize a ``/v1/kv/<prefix>?recurse`` body into entries (order kept)."""
    parsed = _KV_LIST_ADAPTER.validate_python(payload)
    return tuple(
        KeyValueEntry(
            key=item.key,
            value=item.value,
            create_index=item.create_index,
            modify_index=item.modify_index,
            flags=item.flags,
        )
        for item in parsed
    )


def parse_index_header(raw: str | None) -> int:
    if raw is None:
        raise ValueError("response is missing the X-Consul-Index header")
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"invalid X-Consul-Index header: {raw!r}") from exc


__all__ = ["parse_index_header", "parse_kv_entries"]
