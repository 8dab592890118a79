"""Pytest configuration and fixtures for slog tests."""

import logging
import threading
import time
from collections.abc import Callable

import pytest

from slog import Entry, Level, RootLogger


class RecordingReporter:
    """Reporter storing every entry it receives, in order."""

    def __init__(self) -> None:
        self.entries: list[Entry] = []
        self._lock = threading.Lock()

    def log(self, entry: Entry) -> None:
        with self._lock:
            self.entries.append(entry)

    @property
    def data(self) -> list[tuple]:
        with self._lock:
            return [entry.data for entry in self.entries]


def wait_until(
    predicate: Callable[[], bool], timeout: float = 5.0
) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Make sure slog diagnostics reach pytest's caplog handler."""
    slog_logger = logging.getLogger("slog")
    original = slog_logger.propagate
    slog_logger.propagate = True
    yield
    slog_logger.propagate = original


@pytest.fixture
def recorder() -> RecordingReporter:
    """Return a fresh recording reporter."""
    return RecordingReporter()


@pytest.fixture
def root(recorder: RecordingReporter):
    """Root logger at EVERYTHING reporting to ``recorder``.

    The pipeline is stopped and drained at teardown.
    """
    logger = RootLogger("parent", Level.EVERYTHING, recorder)
    yield logger
    logger.stop(None)
