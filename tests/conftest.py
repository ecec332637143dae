from __future__ import annotations

from collections.abc import Generator

import pytest

from kvwatch.runtime.watcher import WatchedConfigurationSource
from tests.fixtures.fakes import ROOT_PATH, FakeListingClient, RecordingErrorReporter


@pytest.fixture
def fake_client() -> FakeListingClient:
    return FakeListingClient()


@pytest.fixture
def error_reporter() -> RecordingErrorReporter:
    return RecordingErrorReporter()


@pytest.fixture
def watcher(
    fake_client: FakeListingClient,
    error_reporter: RecordingErrorReporter,
) -> Generator[WatchedConfigurationSource, None, None]:
    source = WatchedConfigurationSource(
        root_path=ROOT_PATH,
        client=fake_client,
        watch_interval_seconds=10,
        error_reporter=error_reporter,
        stop_timeout_seconds=2.0,
    )
    yield source
    source.stop(timeout=2.0)
