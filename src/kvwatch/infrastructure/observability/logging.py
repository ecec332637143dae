"""Logging helpers (formatter + dictConfig builder) for the watcher."""

from __future__ import annotations

import json
import logging
import os
import time
import traceback
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from logging.config import dictConfig
from typing import Any

from opentelemetry import trace


def _level(env_var: str, default: str) -> str:
    return os.getenv(env_var, default).upper()


def _json_lines_enabled() -> bool:
    return os.getenv("LOG_FORMAT", "console").strip().lower() == "json"


def _structured_payload(record: logging.LogRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "message": record.getMessage(),
        "severity": record.levelname,
        "logger": record.name,
        "timestamp": (
            f"{time.strftime('%Y-%m-%dT%H:%M:%S', time.gmtime(record.created))}"
            f".{int(record.msecs):03d}Z"
        ),
    }
    record_data = record.__dict__.get("data")
    if record_data:
        payload["data"] = _sanitize_for_json(record_data)
    otel = record.__dict__.get("otel")
    if otel:
        payload["otel"] = otel
    if record.exc_info:
        payload["exception"] = "".join(traceback.format_exception(*record.exc_info)).rstrip("\n")
    return payload


class ExtrasFormatter(logging.Formatter):
    """Append structured `data` payloads when present."""

    def format(self, record: logging.LogRecord) -> str:
        if _json_lines_enabled():
            return json.dumps(_structured_payload(record), sort_keys=True, separators=(",", ":"))

        formatted = super().format(record)
        record_data = record.__dict__.get("data")
        if record_data:
            encoded = json.dumps(_sanitize_for_json(record_data), sort_keys=True, separators=(",", ":"))
            return f"{formatted} | data={encoded}"
        return formatted


class OtelContextLogFilter(logging.Filter):
    """Attach the active trace and span ids as ``record.otel``."""

    def filter(self, record: logging.LogRecord) -> bool:
        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            record.otel = {
                "trace_id": f"{span_context.trace_id:032x}",
                "span_id": f"{span_context.span_id:016x}",
            }
        return True

def build_log_config(
    *,
    root_level_env: str = "LOG_LEVEL",
    root_default: str = "INFO",
    extra_loggers: Mapping[str, dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Return a dictConfig-compatible logging configuration."""

    loggers: dict[str, dict[str, Any]] = {
        "httpx": {
            "level": _level("HTTPX_LOG_LEVEL", "WARNING"),
            "handlers": ["console"],
            "propagate": False,
        },
        "httpcore": {
            "level": _level("HTTPX_LOG_LEVEL", "WARNING"),
            "handlers": ["console"],
            "propagate": False,
        },
        "kvwatch.consul": {
            "level": _level("KVWATCH_CONSUL_LOG_LEVEL", "INFO"),
            "handlers": ["console"],
            "propagate": False,
        },
    }
    if extra_loggers:
        loggers.update(extra_loggers)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "()": ExtrasFormatter,
                "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
            }
        },
        "filters": {"otel_context": {"()": OtelContextLogFilter}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "stream": "ext://sys.stdout",
                "filters": ["otel_context"],
            }
        },
        "root": {"level": _level(root_level_env, root_default), "handlers": ["console"]},
        "loggers": loggers,
    }


def _sanitize_for_json(value: Any, depth: int = 6, max_items: int = 100) -> Any:
    """Return a JSON-serializable copy of a log payload; unknowns become strings."""

    if depth <= 0:
        return "<depth_exceeded>"
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes len={len(value)}>"
    if is_dataclass(value) and not isinstance(value, type):
        return _sanitize_for_json(asdict(value), depth - 1, max_items)
    if isinstance(value, Mapping):
        items = list(value.items())
        result = {str(k): _sanitize_for_json(v, depth - 1, max_items) for k, v in items[:max_items]}
        if len(items) > max_items:
            result["<truncated>"] = f"...{len(items) - max_items} more"
        return result
    if isinstance(value, (list, tuple, set, frozenset)):
        items = list(value)
        out = [_sanitize_for_json(item, depth - 1, max_items) for item in items[:max_items]]
        if len(items) > max_items:
            out.append(f"... {len(items) - max_items} more")
        return out
    return str(value)


def configure_logging(
    *,
    root_level_env: str = "LOG_LEVEL",
    root_default: str = "INFO",
    extra_loggers: Mapping[str, dict[str, Any]] | None = None,
) -> None:
    """Apply the watcher logging config."""
    config = build_log_config(
        root_level_env=root_level_env,
        root_default=root_default,
        extra_loggers=extra_loggers,
    )
    dictConfig(config)
    logging.getLogger("kvwatch.observability.logging").debug(
        "configured logging",
        extra={"data": {"root_level": config["root"]["level"]}},
    )


__all__ = ["ExtrasFormatter", "OtelContextLogFilter", "build_log_config", "configure_logging"]
