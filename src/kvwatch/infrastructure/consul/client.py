"""HTTP client for Consul's KV listing API with blocking-query support."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from kvwatch.domain.entry import KeyValueListing
from kvwatch.errors import FetchError
from kvwatch.infrastructure.consul.parsers import parse_index_header, parse_kv_entries
from kvwatch.retry_utils import RetryPolicy, backoff_ms

logger = logging.getLogger("kvwatch.consul")

CONSUL_INDEX_HEADER = "X-Consul-Index"
DEFAULT_RETRY_POLICY = RetryPolicy(attempts=3, initial_ms=200, max_ms=5000, jitter=0.2)


class ConsulClientError(FetchError):
    """Raised when Consul responds with an unexpected status or payload."""


@dataclass
class HttpConsulKvClient:
    """Implementation of KvListingClient backed by HTTPX."""

    base_url: str
    datacenter: str | None = None
    timeout_seconds: float = 10.0
    retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY
    transport: httpx.BaseTransport | None = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("consul base_url must not be empty")

    def _client(self, wait_seconds: float | None) -> httpx.Client:
        read_timeout = self.timeout_seconds
        if wait_seconds:
            # Consul adds up to wait/16 of jitter to blocking queries.
            read_timeout += wait_seconds + wait_seconds / 16
        return httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout_seconds, read=read_timeout),
            transport=self.transport,
        )

    def _params(self, index: int | None, wait_seconds: float | None) -> dict[str, str]:
        params = {"recurse": "true"}
        if index is not None and index > 0:
            params["index"] = str(index)
            if wait_seconds:
                params["wait"] = f"{max(1, round(wait_seconds * 1000))}ms"
        if self.datacenter:
            params["dc"] = self.datacenter
        return params

    def list_values(
        self,
        prefix: str,
        *,
        index: int | None,
        wait_seconds: float | None,
    ) -> KeyValueListing:
        path = f"/v1/kv/{quote(prefix.lstrip('/'), safe='/')}"
        params = self._params(index, wait_seconds)
        response = self._get_with_retries(path, params, wait_seconds)
        if response.status_code not in (httpx.codes.OK, httpx.codes.NOT_FOUND):
            raise ConsulClientError(f"consul returned {response.status_code} for GET {path}")

        try:
            new_index = parse_index_header(response.headers.get(CONSUL_INDEX_HEADER))
        except ValueError as exc:
            raise ConsulClientError(f"consul returned {exc} for GET {path}") from exc
        # An index of 0 would send the next request without ``index``/``wait``.
        new_index = max(new_index, 1)

        if response.status_code == httpx.codes.NOT_FOUND:
            return KeyValueListing(entries=(), index=new_index)

        try:
            entries = parse_kv_entries(response.json())
        except (ValueError, ValidationError) as exc:
            raise ConsulClientError(f"consul returned a malformed listing for GET {path}") from exc
        return KeyValueListing(entries=entries, index=new_index)

    def _get_with_retries(
        self,
        path: str,
        params: dict[str, str],
        wait_seconds: float | None,
    ) -> httpx.Response:
        attempts = max(1, self.retry_policy.attempts)
        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            try:
                with self._client(wait_seconds) as client:
                    response = client.get(path, params=params, headers={"Accept": "application/json"})
            except httpx.TransportError as exc:
                if last_attempt:
                    raise ConsulClientError(f"consul request failed for GET {path}: {exc}") from exc
                reason = type(exc).__name__
            else:
                if response.status_code < httpx.codes.INTERNAL_SERVER_ERROR or last_attempt:
                    return response
                reason = f"status_{response.status_code}"

            delay_ms = backoff_ms(attempt, self.retry_policy)
            logger.warning(
                "consul request retry",
                extra={"data": {"path": path, "attempt": attempt + 1, "reason": reason, "delay_ms": delay_ms}},
            )
            self.sleep(delay_ms / 1000)
        raise AssertionError("unreachable")  # pragma: no cover


__all__ = ["CONSUL_INDEX_HEADER", "ConsulClientError", "HttpConsulKvClient"]
