"""Immutable log entry passed from loggers to reporters."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from slog.constants import SOURCE_SEPARATOR

if TYPE_CHECKING:
    from collections.abc import Iterable

    from slog.levels import Level


@dataclass(frozen=True, slots=True)
class Entry:
    """A single log item.

    Attributes:
        level: Level the entry was emitted at.
        timestamp: Time the entry was created (timezone aware).
        source: Source path segments, root first.
        data: Values passed by the caller, in order. May include errors.

    """

    level: Level
    timestamp: datetime
    source: tuple[str, ...]
    data: tuple[Any, ...]

    @classmethod
    def create(
        cls, level: Level, source: Iterable[str], data: Iterable[Any]
    ) -> Entry:
        """Build an entry stamped with the current time."""
        return cls(
            level=level,
            timestamp=datetime.now().astimezone(),
            source=tuple(source),
            data=tuple(data),
        )

    def source_path(self, separator: str = SOURCE_SEPARATOR) -> str:
        """Return the source segments joined by ``separator``."""
        return separator.join(self.source)
