"""Rendering helpers for text reporters.

This module provides:
- format_entry(): Render an Entry as a single println-style text line
- ColoredEntryFormatter: logging.Formatter coloring the entry level name

The text layout mirrors a println of every argument: the source path
followed by a colon, then each data value separated by a space.
"""

import logging

from slog.constants import (
    COLOR_RESET,
    ENTRY_RECORD_ATTR,
    LEVEL_COLORS,
    SOURCE_SEPARATOR,
)
from slog.entry import Entry


def format_entry(entry: Entry, separator: str = SOURCE_SEPARATOR) -> str:
    """Render an entry as ``"parent➤child: value value"``.

    Args:
        entry: The entry to render
        separator: String placed between source segments

    Returns:
        Rendered text line without a trailing newline

    Example:
        An INFO entry from ``parent>child`` carrying ``("disk", 93)``
        renders as ``"parent➤child: disk 93"``.

    """
    parts = [entry.source_path(separator) + ":"]
    parts.extend(str(value) for value in entry.data)
    return " ".join(parts)


class ColoredEntryFormatter(logging.Formatter):
    """Formatter showing the entry's own level name in ANSI color.

    Records written by LogReporter carry their Entry in the
    ``slog_entry`` attribute. For those records ``%(levelname)s``
    renders the entry's Level name (ERR, WARN, INFO) in its color, so a
    fatal ERR logged at CRITICAL still reads ``ERR``. The record itself
    is not modified. Records without an entry format as usual.

    Colors:
        ERR: Red
        WARN: Yellow
        INFO: Green

    """

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        entry = getattr(record, ENTRY_RECORD_ATTR, None)
        if not isinstance(entry, Entry):
            return super().formatMessage(record)

        name = entry.level.name
        color = LEVEL_COLORS.get(name)
        shown = logging.makeLogRecord(record.__dict__)
        shown.levelname = f"{color}{name}{COLOR_RESET}" if color else name
        return super().formatMessage(shown)
