"""asyncio adapter for logger handles.

Emitting blocks the calling thread until the dispatch thread takes the
entry. Inside an event loop that would stall every other task while a
slow reporter works, so AsyncLogger runs the hand-off in the default
executor. Gate checks never block and run inline.

Usage:
    >>> alog = AsyncLogger(root.new("worker"))
    >>> if alog.enabled(Level.INFO):
    ...     await alog.info("fetched", url)
"""

from __future__ import annotations

import asyncio
import functools
from typing import TYPE_CHECKING, Any

from slog.levels import Level

if TYPE_CHECKING:
    from slog.logger import LevelLogger, RootLogger


class AsyncLogger:
    """Awaitable wrapper around a logger handle.

    Attributes:
        handle: Wrapped handle (Logger, RootLogger or NilLogger)

    """

    def __init__(self, handle: LevelLogger) -> None:
        self.handle = handle

    def enabled(self, level: Level) -> bool:
        """Gate check for ``level`` without logging anything."""
        if level == Level.ERR:
            return self.handle.err()
        if level == Level.WARN:
            return self.handle.warn()
        if level == Level.INFO:
            return self.handle.info()
        # NOTHING and EVERYTHING are thresholds, not entry levels
        return False

    async def info(self, *args: Any) -> bool:
        return await self._emit(self.handle.info, args)

    async def warn(self, *args: Any) -> bool:
        return await self._emit(self.handle.warn, args)

    async def err(self, *args: Any) -> bool:
        return await self._emit(self.handle.err, args)

    def new(self, source: str) -> AsyncLogger:
        """Wrap a new descendant of the wrapped handle."""
        return AsyncLogger(self.handle.new(source))

    @staticmethod
    async def _emit(method: Any, args: tuple[Any, ...]) -> bool:
        if not args:
            return method()
        if not method():
            return False
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None, functools.partial(method, *args)
        )


async def wait_stopped(
    root: RootLogger, timeout: float | None = None
) -> bool:
    """Wait for a root's pipeline to drain without blocking the loop.

    Returns:
        True if the pipeline drained within ``timeout``

    """
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, root.wait, timeout)
