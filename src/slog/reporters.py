"""Reporters receive finished entries from the dispatch thread.

A reporter is anything with a ``log(entry)`` method. Reporters are always
invoked from a root's single dispatch thread, one entry at a time, so an
implementation only needs its own locking when it is shared between
several roots.

Variants provided here:
- ReporterFunc: adapts a plain callable
- FanOutReporter: forwards each entry to several reporters, in order
- NullReporter: discards entries
- LogReporter: renders text through a stdlib logging.Logger
- StreamReporter: LogReporter writing to a text stream
- JsonLinesReporter: renders one JSON object per line with orjson
"""

from __future__ import annotations

import io
import logging
import os
import sys
import threading
from collections.abc import Callable
from typing import IO, TYPE_CHECKING, Protocol, runtime_checkable

import orjson

from slog.constants import (
    ENTRY_RECORD_ATTR,
    LOG_COLORED_FORMAT,
    LOG_STREAM_DATE_FORMAT,
    LOG_STREAM_FORMAT,
    SOURCE_SEPARATOR,
)
from slog.formatters import ColoredEntryFormatter, format_entry
from slog.levels import Level

if TYPE_CHECKING:
    from slog.entry import Entry

_LOGGING_LEVELS = {
    Level.ERR: logging.ERROR,
    Level.WARN: logging.WARNING,
    Level.INFO: logging.INFO,
}


@runtime_checkable
class Reporter(Protocol):
    """Destination for log entries."""

    def log(self, entry: Entry) -> None:
        """Receive one entry from the dispatch thread."""
        ...


class ReporterFunc:
    """Adapt a callable taking an Entry to the Reporter protocol."""

    def __init__(self, func: Callable[[Entry], object]) -> None:
        self.func = func

    def log(self, entry: Entry) -> None:
        self.func(entry)

    def __repr__(self) -> str:
        return f"ReporterFunc({self.func!r})"


def as_reporter(target: Reporter | Callable[[Entry], object]) -> Reporter:
    """Return ``target`` as a Reporter, wrapping plain callables.

    Raises:
        TypeError: If target is neither a reporter nor callable.

    """
    if isinstance(target, Reporter):
        return target
    if callable(target):
        return ReporterFunc(target)
    msg = f"expected a reporter or callable, got {type(target).__name__}"
    raise TypeError(msg)


class FanOutReporter:
    """Forward every entry to several reporters.

    Sub-reporters are called synchronously and strictly in the order
    given, on the calling (dispatch) thread. An exception raised by one
    sub-reporter propagates and the remaining ones are skipped for that
    entry.
    """

    def __init__(
        self, *targets: Reporter | Callable[[Entry], object]
    ) -> None:
        self.reporters: tuple[Reporter, ...] = tuple(
            as_reporter(target) for target in targets
        )

    def log(self, entry: Entry) -> None:
        for reporter in self.reporters:
            reporter.log(entry)


def reporters(*targets: Reporter | Callable[[Entry], object]) -> Reporter:
    """Return a reporter that reports to all of ``targets`` in order."""
    return FanOutReporter(*targets)


class NullReporter:
    """No-op reporter used until a real one is installed."""

    def log(self, entry: Entry) -> None:  # noqa: ARG002
        """Discard the entry."""


NULL_REPORTER = NullReporter()


class LogReporter:
    """Write entries through a stdlib ``logging.Logger``.

    Each entry becomes one record whose message is the rendered text
    line (see ``format_entry``). ERR entries map to ERROR, WARN to
    WARNING and INFO to INFO. The entry itself rides along in the
    record's ``slog_entry`` attribute for formatters and filters.

    When ``fatal`` is true, ERR entries are logged at CRITICAL, the
    logger's handlers are flushed and the process is terminated through
    ``exit_func(1)``. The dispatch thread cannot end the process with
    ``sys.exit``, so the default is ``os._exit``.

    Attributes:
        logger: Destination logger
        fatal: Whether ERR entries terminate the process
        separator: Source path separator used when rendering

    """

    def __init__(
        self,
        logger: logging.Logger,
        fatal: bool = False,  # noqa: FBT001, FBT002
        separator: str = SOURCE_SEPARATOR,
        exit_func: Callable[[int], object] = os._exit,
    ) -> None:
        """Initialize the reporter.

        Args:
            logger: Logger that receives rendered entries
            fatal: Terminate the process after an ERR entry
            separator: String placed between source segments
            exit_func: Called with exit status 1 after a fatal entry

        """
        self.logger = logger
        self.fatal = fatal
        self.separator = separator
        self._exit = exit_func

    def log(self, entry: Entry) -> None:
        text = format_entry(entry, self.separator)
        extra = {ENTRY_RECORD_ATTR: entry}
        if self.fatal and entry.level == Level.ERR:
            self.logger.critical("%s", text, extra=extra)
            self._flush()
            self._exit(1)
            return
        self.logger.log(
            _LOGGING_LEVELS.get(entry.level, logging.INFO),
            "%s",
            text,
            extra=extra,
        )

    def _flush(self) -> None:
        for handler in self.logger.handlers:
            try:
                handler.flush()
            except (OSError, ValueError):
                # Handler already closed; nothing left to flush
                continue


class StreamReporter(LogReporter):
    """LogReporter writing to a text stream with a date/time prefix.

    The reporter owns a private ``logging.Logger`` that is not registered
    with the logging manager and does not propagate, so records never
    reach the application's own handlers.
    """

    def __init__(
        self,
        stream: IO[str],
        fatal: bool = False,  # noqa: FBT001, FBT002
        colored: bool = False,  # noqa: FBT001, FBT002
        separator: str = SOURCE_SEPARATOR,
        exit_func: Callable[[int], object] = os._exit,
    ) -> None:
        """Initialize the reporter.

        Args:
            stream: Text stream to write to
            fatal: Terminate the process after an ERR entry
            colored: Include an ANSI colored level name in each line
            separator: String placed between source segments
            exit_func: Called with exit status 1 after a fatal entry

        """
        logger = logging.Logger(f"slog.stream.{id(self):x}", logging.DEBUG)
        logger.propagate = False
        handler = logging.StreamHandler(stream)
        if colored:
            handler.setFormatter(
                ColoredEntryFormatter(
                    LOG_COLORED_FORMAT, datefmt=LOG_STREAM_DATE_FORMAT
                )
            )
        else:
            handler.setFormatter(
                logging.Formatter(
                    LOG_STREAM_FORMAT, datefmt=LOG_STREAM_DATE_FORMAT
                )
            )
        logger.addHandler(handler)
        super().__init__(
            logger, fatal=fatal, separator=separator, exit_func=exit_func
        )
        self.stream = stream


def stdout_reporter(
    fatal: bool = True,  # noqa: FBT001, FBT002
    colored: bool = False,  # noqa: FBT001, FBT002
) -> StreamReporter:
    """Return a reporter writing to ``sys.stdout``.

    By default ERR entries terminate the process, like a fatal println.
    """
    return StreamReporter(sys.stdout, fatal=fatal, colored=colored)


class JsonLinesReporter:
    """Write each entry as one JSON object per line.

    Output keys: ``level`` (name), ``timestamp`` (RFC 3339), ``source``
    (list) and ``data`` (list). Values orjson cannot serialize natively,
    such as exceptions, are rendered with ``str``.

    Accepts text or binary streams. Unless ``binary`` is given, a stream
    counts as binary when it is a raw or buffered io object or was
    opened with a ``b`` mode; anything else is written text.
    """

    def __init__(
        self,
        stream: IO[str] | IO[bytes],
        binary: bool | None = None,  # noqa: FBT001
    ) -> None:
        self.stream = stream
        if binary is None:
            binary = _is_binary(stream)
        self.binary = binary
        self._lock = threading.Lock()

    def log(self, entry: Entry) -> None:
        line = self.render(entry)
        with self._lock:
            if self.binary:
                self.stream.write(line)  # type: ignore[arg-type]
            else:
                text = line.decode("utf-8")
                self.stream.write(text)  # type: ignore[arg-type]
            self.stream.flush()

    @staticmethod
    def render(entry: Entry) -> bytes:
        """Serialize an entry to a newline-terminated JSON document."""
        record = {
            "level": entry.level.name,
            "timestamp": entry.timestamp,
            "source": list(entry.source),
            "data": list(entry.data),
        }
        try:
            return orjson.dumps(
                record, default=str, option=orjson.OPT_APPEND_NEWLINE
            )
        except orjson.JSONEncodeError:
            # Integers beyond 64 bits and similar never reach default=
            record["data"] = [str(value) for value in entry.data]
            return orjson.dumps(
                record, default=str, option=orjson.OPT_APPEND_NEWLINE
            )


def _is_binary(stream: object) -> bool:
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return True
    if isinstance(stream, io.TextIOBase):
        return False
    mode = getattr(stream, "mode", "")
    return isinstance(mode, str) and "b" in mode
