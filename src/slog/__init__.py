"""Concurrent leveled logging with parent/child loggers.

Features:
- Concurrency safe: any number of threads may log through one hierarchy
- Three levels: Level.ERR, Level.WARN and Level.INFO, filtered by a
  runtime adjustable threshold (Level.NOTHING to Level.EVERYTHING)
- Child loggers for sub-processes, reported as ``parent➤child``
- NIL_LOGGER to turn logging off without changing calling code
- Custom reporters to send logs anywhere, and reporters() to fan out

Architecture:
    handle.info(...) → gate check → HandOff → Dispatcher thread → Reporter

    Each root logger owns one dispatch thread. Producers block until the
    dispatch thread takes their entry, so reporters are always called
    one entry at a time.

Usage:
    >>> import slog
    >>> root = slog.new("parent", slog.Level.WARN)
    >>> root.set_reporter(slog.stdout_reporter())
    >>> if root.info():
    ...     root.info("This is some information")
    >>> child = root.new("child")
    >>> child.err("failed to do something:", err)
    >>> root.stop()
    >>> root.stopped().wait()

The package reports its own diagnostics through the standard ``logging``
module under the ``slog`` logger, which has only a NullHandler attached.
"""

import logging
from importlib.metadata import PackageNotFoundError, version

from slog.aio import AsyncLogger, wait_stopped
from slog.config import LogSettings, load_log_settings, setup_logging
from slog.constants import NO_WAIT, SOURCE_SEPARATOR
from slog.entry import Entry
from slog.exceptions import ConfigurationError, SlogError
from slog.formatters import ColoredEntryFormatter, format_entry
from slog.levels import Level, parse_level
from slog.logger import (
    NIL_LOGGER,
    LevelLogger,
    Logger,
    NilLogger,
    RootLogger,
    new,
)
from slog.reporters import (
    NULL_REPORTER,
    FanOutReporter,
    JsonLinesReporter,
    LogReporter,
    NullReporter,
    Reporter,
    ReporterFunc,
    StreamReporter,
    as_reporter,
    reporters,
    stdout_reporter,
)

try:
    __version__ = version("slog")
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "dev"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "NIL_LOGGER",
    "NO_WAIT",
    "NULL_REPORTER",
    "SOURCE_SEPARATOR",
    "AsyncLogger",
    "ColoredEntryFormatter",
    "ConfigurationError",
    "Entry",
    "FanOutReporter",
    "JsonLinesReporter",
    "Level",
    "LevelLogger",
    "LogReporter",
    "LogSettings",
    "Logger",
    "NilLogger",
    "NullReporter",
    "Reporter",
    "ReporterFunc",
    "RootLogger",
    "SlogError",
    "StreamReporter",
    "as_reporter",
    "format_entry",
    "load_log_settings",
    "new",
    "parse_level",
    "reporters",
    "setup_logging",
    "stdout_reporter",
    "wait_stopped",
]
