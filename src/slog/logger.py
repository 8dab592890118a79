"""Logger handles: root, descendants, and the nil logger.

Every handle belongs to exactly one hierarchy. The root owns the shared
state (threshold, reporter, dispatch pipeline); descendants only own
their source path and delegate everything else to the root they were
created from.

Usage:
    >>> root = RootLogger("parent", Level.WARN, stdout_reporter())
    >>> if root.info():
    ...     root.info("expensive", compute())
    >>> child = root.new("child")
    >>> child.err("failed to do something:", err)  # parent➤child: ...
    >>> root.stop(None)

Thread Safety:
    All handle methods are safe to call from any thread. Emitting blocks
    until the dispatch thread takes the entry.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, Self, runtime_checkable

from slog.constants import DISPATCH_THREAD_PREFIX, NO_WAIT
from slog.dispatch import Dispatcher, HandOff
from slog.entry import Entry
from slog.levels import Level, parse_level
from slog.reporters import NULL_REPORTER, Reporter, as_reporter
from slog.state import _RootState

if TYPE_CHECKING:
    import types

_log = logging.getLogger(__name__)


@runtime_checkable
class LevelLogger(Protocol):
    """Interface shared by every handle, including NilLogger.

    Each level method is a combined gate and emit: without arguments it
    only reports whether the level is enabled; with arguments it also
    logs them and reports whether it did.
    """

    def info(self, *args: Any) -> bool: ...

    def warn(self, *args: Any) -> bool: ...

    def err(self, *args: Any) -> bool: ...

    def new(self, source: str) -> LevelLogger: ...


class Logger:
    """Descendant handle in a logger hierarchy.

    Holds its own source path and a reference to the root. Created with
    ``new()`` on another handle, never directly.

    Attributes:
        root: The root this handle delivers through

    """

    def __init__(self, root: RootLogger, source: tuple[str, ...]) -> None:
        """Initialize the handle.

        Args:
            root: Root logger owning the shared state
            source: Full source path of this handle

        """
        self.root = root
        self._source = source
        self._source_lock = threading.Lock()

    @property
    def source(self) -> tuple[str, ...]:
        """Full source path of this handle, root first."""
        with self._source_lock:
            return self._source

    def set_source(self, source: str) -> None:
        """Replace the last segment of this handle's source path.

        Only entries emitted by this handle, and descendants created
        from it afterwards, see the new segment.
        """
        with self._source_lock:
            self._source = (*self._source[:-1], source)

    def new(self, source: str) -> Logger:
        """Create a descendant whose path is this path plus ``source``."""
        return Logger(self.root, (*self.source, source))

    def info(self, *args: Any) -> bool:
        """Gate check for INFO, logging ``args`` when given."""
        return self._emit(Level.INFO, args)

    def warn(self, *args: Any) -> bool:
        """Gate check for WARN, logging ``args`` when given."""
        return self._emit(Level.WARN, args)

    def err(self, *args: Any) -> bool:
        """Gate check for ERR, logging ``args`` when given."""
        return self._emit(Level.ERR, args)

    def _emit(self, level: Level, args: tuple[Any, ...]) -> bool:
        state = self.root._state  # noqa: SLF001
        if not state.allows(level):
            return False
        if not args:
            return True
        return self.root._deliver(  # noqa: SLF001
            Entry.create(level, self.source, args)
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({'>'.join(self.source)!r})"


class RootLogger(Logger):
    """Root handle owning the threshold, reporter and dispatch pipeline.

    The pipeline is started on construction. Until a reporter is set,
    entries go to NULL_REPORTER.

    Example:
        >>> with RootLogger("app", Level.INFO) as root:
        ...     root.set_reporter(stdout_reporter(fatal=False))
        ...     root.new("db").warn("slow query", 1.2)

    """

    def __init__(
        self,
        source: str,
        level: Level | str | int,
        reporter: Reporter | Callable[[Entry], object] | None = None,
    ) -> None:
        """Create a root logger and start its pipeline.

        Args:
            source: Source segment of the root
            level: Initial threshold
            reporter: Reporter to start with, NULL_REPORTER if None

        Raises:
            ConfigurationError: If level is not a valid level

        """
        super().__init__(self, (source,))
        self._state = _RootState(
            parse_level(level),
            as_reporter(reporter) if reporter is not None else NULL_REPORTER,
        )
        self.start()

    @property
    def level(self) -> Level:
        """Current threshold."""
        with self._state.lock:
            return self._state.level

    def set_level(self, level: Level | str | int) -> None:
        """Set the threshold for this root and all its descendants."""
        level = parse_level(level)
        with self._state.lock:
            self._state.level = level

    @property
    def reporter(self) -> Reporter:
        """Reporter currently installed."""
        with self._state.lock:
            return self._state.reporter

    @property
    def running(self) -> bool:
        """Whether the pipeline is accepting entries."""
        with self._state.lock:
            return self._state.running

    def set_reporter(
        self, reporter: Reporter | Callable[[Entry], object]
    ) -> None:
        """Swap the reporter by stopping, draining and restarting.

        Entries emitted before the call, including those still blocked
        waiting for the hand-off, are delivered to the old reporter
        only; entries emitted after it returns go to the new one only.
        Restarts a stopped root.

        Raises:
            RuntimeError: If called from inside a reporter of this root,
                where waiting for the drain would deadlock

        """
        reporter = as_reporter(reporter)
        if self._on_dispatch_thread():
            msg = "set_reporter cannot be called from a reporter"
            raise RuntimeError(msg)
        with self._state.lifecycle:
            with self._state.lock:
                self._state.restarting = True
            try:
                self._halt(drain_waiting=True)
                self.stopped().wait()
                with self._state.lock:
                    self._state.reporter = reporter
                self.start()
            finally:
                with self._state.lock:
                    self._state.restarting = False

    def set_reporter_func(self, func: Callable[[Entry], object]) -> None:
        """Install a plain callable as the reporter."""
        self.set_reporter(as_reporter(func))

    def start(self) -> None:
        """Start the pipeline with the installed reporter.

        Does nothing if the pipeline is already running.
        """
        with self._state.lifecycle:
            with self._state.lock:
                if self._state.running:
                    return
                reporter = self._state.reporter
            handoff = HandOff()
            dispatcher = Dispatcher(
                handoff,
                reporter,
                name=f"{DISPATCH_THREAD_PREFIX}-{self.source[0]}",
                on_exit=self._dispatcher_exited,
            )
            dispatcher.start()
            with self._state.lock:
                self._state.handoff = handoff
                self._state.dispatcher = dispatcher
                self._state.running = True

    def stop(self, timeout: float | None = NO_WAIT) -> bool:
        """Stop the pipeline.

        New emits return False from the moment this is called. Entries
        already handed off are still delivered. Calling stop on a
        stopped root is a no-op apart from the optional wait. A reporter
        of this root may call it; the wait is then skipped.

        Args:
            timeout: Seconds to wait for the drain. NO_WAIT returns at
                once (wait on ``stopped()`` instead), None waits
                indefinitely

        Returns:
            True if the pipeline has fully drained

        """
        if self._on_dispatch_thread():
            # A swap in progress may hold the lifecycle lock while it
            # waits for this very thread to drain.
            dispatcher = self._halt()
        else:
            with self._state.lifecycle:
                dispatcher = self._halt()
        if dispatcher is None:
            return True
        return dispatcher.wait(timeout)

    def _halt(self, *, drain_waiting: bool = False) -> Dispatcher | None:
        with self._state.lock:
            was_running = self._state.running
            self._state.running = False
            dispatcher = self._state.dispatcher
        if dispatcher is not None and was_running:
            dispatcher.stop(NO_WAIT, drain_waiting=drain_waiting)
        return dispatcher

    def _on_dispatch_thread(self) -> bool:
        with self._state.lock:
            dispatcher = self._state.dispatcher
        return dispatcher is not None and dispatcher.is_dispatch_thread()

    def _dispatcher_exited(self, dispatcher: Dispatcher) -> None:
        with self._state.lock:
            current = self._state.dispatcher is dispatcher
            died = current and self._state.running
            if died:
                self._state.running = False
        if died:
            _log.error(
                "Dispatch thread %s exited while %s was running",
                dispatcher.name,
                self.source[0],
            )

    def stopped(self) -> threading.Event:
        """Event set once the current pipeline run has drained."""
        with self._state.lock:
            dispatcher = self._state.dispatcher
        if dispatcher is None:
            event = threading.Event()
            event.set()
            return event
        return dispatcher.done

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the current pipeline run to drain.

        Returns:
            True if drained within ``timeout``

        """
        with self._state.lock:
            dispatcher = self._state.dispatcher
        if dispatcher is None:
            return True
        return dispatcher.wait(timeout)

    def _deliver(self, entry: Entry) -> bool:
        state = self._state
        while True:
            with state.lock:
                if not (state.running or state.restarting):
                    return False
                handoff = state.handoff if state.running else None
                dispatcher = state.dispatcher
            if dispatcher is not None and dispatcher.is_dispatch_thread():
                _log.warning(
                    "Dropped entry logged from inside a reporter of %s",
                    self.source[0],
                )
                return False
            if handoff is not None and handoff.send(entry):
                return True
            # Either a reporter swap is in flight or the channel closed
            # before the entry was placed. Wait out any transition and
            # retry only if a new pipeline replaced the old one.
            with state.lifecycle, state.lock:
                replaced = state.running and state.handoff is not handoff
            if not replaced or not state.allows(entry.level):
                return False

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        self.stop(None)


class NilLogger:
    """Logger that never logs.

    Satisfies LevelLogger: every level method returns False, no entry is
    ever created, and ``new()`` returns the same instance. Use it to turn
    logging off without changing calling code.
    """

    source: tuple[str, ...] = ()

    def info(self, *args: Any) -> bool:  # noqa: ARG002
        return False

    def warn(self, *args: Any) -> bool:  # noqa: ARG002
        return False

    def err(self, *args: Any) -> bool:  # noqa: ARG002
        return False

    def new(self, source: str) -> NilLogger:  # noqa: ARG002
        return self

    def set_source(self, source: str) -> None:  # noqa: ARG002
        """Ignore the rename."""

    def __repr__(self) -> str:
        return "NilLogger()"


NIL_LOGGER = NilLogger()


def new(
    source: str,
    level: Level | str | int,
    reporter: Reporter | Callable[[Entry], object] | None = None,
) -> RootLogger:
    """Create a started root logger. See RootLogger."""
    return RootLogger(source, level, reporter)
