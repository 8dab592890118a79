"""Root-owned state shared by every handle of one logger hierarchy.

Each hierarchy has its own state object; nothing here is process-wide.

Locks:
    lock: Guards the mutable fields. Held only for the instant of a read
        or write, never across a send, a receive, or a reporter call.
    lifecycle: Serializes start/stop/set_reporter transitions so at most
        one transition is in flight. Reentrant so set_reporter can stop
        and start within one transition. Never taken on a dispatch
        thread, since a swap holds it while waiting for the drain.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from slog.dispatch import Dispatcher, HandOff
    from slog.levels import Level
    from slog.reporters import Reporter


class _RootState:
    """Container for the mutable state of one root logger.

    Attributes:
        lock: Guards the fields below
        lifecycle: Serializes pipeline transitions
        level: Current threshold
        reporter: Reporter installed for the next start
        handoff: Channel of the current pipeline run
        dispatcher: Dispatcher of the current pipeline run
        running: Whether the current pipeline accepts entries; also
            cleared if the dispatch thread dies on its own
        restarting: Whether a reporter swap is in flight; emitters wait
            for the new pipeline instead of failing

    """

    def __init__(self, level: Level, reporter: Reporter) -> None:
        """Initialize stopped state."""
        self.lock = threading.Lock()
        self.lifecycle = threading.RLock()
        self.level = level
        self.reporter = reporter
        self.handoff: HandOff | None = None
        self.dispatcher: Dispatcher | None = None
        self.running = False
        self.restarting = False

    def allows(self, level: Level) -> bool:
        """Gate check: True if accepting and the threshold admits level."""
        with self.lock:
            return (self.running or self.restarting) and self.level >= level
