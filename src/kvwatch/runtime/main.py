"""Entrypoint: watch a Consul prefix and log every update until signalled."""

from __future__ import annotations

import logging
import signal
import threading
from types import FrameType

from kvwatch.application.listeners import CallbackListener
from kvwatch.domain.diff import WatchedUpdateResult
from kvwatch.errors import WatcherStartupError
from kvwatch.infrastructure.observability.logging import configure_logging
from kvwatch.infrastructure.observability.tracing import configure_tracing
from kvwatch.runtime.bootstrap import create_watcher
from kvwatch.runtime.settings import Settings
from kvwatch.runtime.watcher import WatcherState

logger = logging.getLogger("kvwatch.main")


def log_update(result: WatchedUpdateResult) -> None:
    logger.info(
        "configuration update",
        extra={
            "data": {
                "cursor": result.cursor,
                "incremental": result.incremental,
                "keys": len(result.complete),
                "added": sorted(result.added),
                "changed": sorted(result.changed),
                "removed": sorted(result.removed),
            }
        },
    )


def main() -> int:
    configure_logging()
    settings = Settings.load()
    configure_tracing(service_name=settings.service_name)

    watcher = create_watcher(settings)
    watcher.add_update_listener(CallbackListener(log_update))

    shutdown = threading.Event()

    def _handle_signal(signum: int, _frame: FrameType | None) -> None:
        logger.info("shutdown requested", extra={"data": {"signal": signal.Signals(signum).name}})
        shutdown.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        watcher.start()
    except WatcherStartupError:
        logger.exception("watcher failed to start")
        return 1

    while not shutdown.wait(timeout=1.0):
        if not watcher.running:
            break
    watcher.stop()
    return 0 if watcher.state is WatcherState.TERMINATED else 1


if __name__ == "__main__":
    raise SystemExit(main())
