"""Single-consumer dispatch pipeline.

Architecture:
    Producers (any thread) → HandOff → Dispatcher thread → Reporter

    HandOff is an unbuffered rendezvous: a producer blocks until the
    dispatch thread has taken its entry, so a slow reporter slows down
    every producer (back-pressure) and all reporter calls are serialized
    on one thread.

Shutdown:
    close() stops accepting new entries. A producer whose entry is
    already in the hand-off slot still has it delivered; producers still
    waiting for the slot get False back. close(drain_waiting=True), used
    for reporter swaps, refuses only sends that start after the close:
    producers already blocked in send() are still drained. The dispatch
    thread drains the slot, exits, and sets its done event. Nothing is
    ever raised at a producer because of a concurrent close.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from slog.entry import Entry
    from slog.reporters import Reporter

logger = logging.getLogger(__name__)

_EMPTY = object()


class HandOff:
    """Unbuffered, closable hand-off channel for entries.

    Attributes:
        closed: Whether close() or abort() has been called

    """

    def __init__(self) -> None:
        """Initialize an open, empty channel."""
        self._cond = threading.Condition()
        self._slot: object = _EMPTY
        self._placed = 0
        self._taken = 0
        self._dropped = 0
        self._arrived = 0
        self._waiting = 0
        self._cutoff: int | None = None
        self.closed = False

    def _refuses(self, arrival: int) -> bool:
        if not self.closed:
            return False
        return self._cutoff is None or arrival > self._cutoff

    def send(self, entry: Entry) -> bool:
        """Hand an entry to the consumer, blocking until it is taken.

        Args:
            entry: Entry to deliver

        Returns:
            True once the consumer has taken the entry, False if the
            channel was closed before the entry could be placed or the
            consumer exited without taking it

        """
        with self._cond:
            self._arrived += 1
            arrival = self._arrived
            self._waiting += 1
            try:
                while self._slot is not _EMPTY and not self._refuses(
                    arrival
                ):
                    self._cond.wait()
            finally:
                self._waiting -= 1
                self._cond.notify_all()
            if self._refuses(arrival):
                return False
            self._slot = entry
            self._placed += 1
            ticket = self._placed
            self._cond.notify_all()
            while self._taken < ticket:
                self._cond.wait()
            return self._dropped != ticket

    def receive(self) -> Entry | None:
        """Take the next entry, blocking until one is available.

        Returns:
            The next entry, or None once the channel is closed, empty and
            has no admitted sender left waiting for the slot

        """
        with self._cond:
            while self._slot is _EMPTY and (
                not self.closed or self._draining()
            ):
                self._cond.wait()
            if self._slot is _EMPTY:
                return None
            entry = self._slot
            self._slot = _EMPTY
            self._taken += 1
            self._cond.notify_all()
            return entry  # type: ignore[return-value]

    def _draining(self) -> bool:
        return self._cutoff is not None and self._waiting > 0

    def close(self, *, drain_waiting: bool = False) -> None:
        """Stop accepting entries. Safe to call more than once.

        Args:
            drain_waiting: Keep admitting producers already blocked in
                send() when the channel closes; only sends that start
                afterwards are refused. A plain close refuses every
                producer that has not yet placed its entry.

        """
        with self._cond:
            if not self.closed:
                self.closed = True
                if drain_waiting:
                    self._cutoff = self._arrived
            elif not drain_waiting:
                self._cutoff = None
            self._cond.notify_all()

    def abort(self) -> None:
        """Close the channel and release every pending producer.

        Called when the consumer exits. After a normal drain the slot is
        already empty and no producer is waiting.
        """
        with self._cond:
            self.closed = True
            self._cutoff = None
            if self._slot is not _EMPTY:
                self._slot = _EMPTY
                self._dropped = self._placed
                self._taken = self._placed
            self._cond.notify_all()


class Dispatcher:
    """Dispatch thread draining one HandOff into one reporter.

    Modelled on ``logging.handlers.QueueListener``: a daemon thread
    receives entries until the channel is closed and calls the reporter
    for each one. A dispatcher runs once; restarting the pipeline means
    creating a new HandOff and Dispatcher.

    Attributes:
        handoff: Channel this dispatcher drains
        reporter: Reporter receiving every entry
        done: Set once the channel is closed and drained

    """

    def __init__(
        self,
        handoff: HandOff,
        reporter: Reporter,
        name: str,
        on_exit: Callable[[Dispatcher], object] | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            handoff: Channel to drain
            reporter: Reporter to call for each entry
            name: Thread name
            on_exit: Called on the dispatch thread when it exits for
                any reason, before ``done`` is set

        """
        self.handoff = handoff
        self.reporter = reporter
        self.name = name
        self.on_exit = on_exit
        self.done = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the dispatch thread."""
        self._thread = threading.Thread(
            target=self._monitor, name=self.name, daemon=True
        )
        self._thread.start()
        logger.debug("Dispatch thread %s started", self.name)

    def _monitor(self) -> None:
        try:
            while True:
                entry = self.handoff.receive()
                if entry is None:
                    break
                self.handle(entry)
        finally:
            self.handoff.abort()
            try:
                if self.on_exit is not None:
                    self.on_exit(self)
            finally:
                self.done.set()
            logger.debug("Dispatch thread %s stopped", self.name)

    def handle(self, entry: Entry) -> None:
        """Deliver one entry to the reporter.

        A reporter exception is logged with its traceback and the entry
        is not retried.
        """
        try:
            self.reporter.log(entry)
        except Exception:
            logger.exception(
                "Reporter %r failed on entry from %s",
                self.reporter,
                entry.source_path(),
            )

    def stop(
        self, timeout: float | None = 0.0, *, drain_waiting: bool = False
    ) -> bool:
        """Close the channel and optionally wait for the drain.

        Args:
            timeout: Seconds to wait for the drain. 0 returns at once,
                None waits indefinitely
            drain_waiting: Still deliver entries from producers already
                blocked in send()

        Returns:
            True if the dispatcher has finished draining

        """
        self.handoff.close(drain_waiting=drain_waiting)
        return self.wait(timeout)

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the drain to finish.

        Never blocks when called from the dispatch thread itself.
        """
        if timeout == 0 or self.is_dispatch_thread():
            return self.done.is_set()
        return self.done.wait(timeout)

    def is_dispatch_thread(self) -> bool:
        """Return True when called from this dispatcher's thread."""
        return threading.current_thread() is self._thread
