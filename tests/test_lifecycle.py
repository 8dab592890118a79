"""Tests for the dispatch lifecycle: stop, restart and reporter swaps."""

import logging
import threading
import time

import pytest

from slog import NO_WAIT, Level, RootLogger
from tests.conftest import RecordingReporter, wait_until


class BlockingReporter(RecordingReporter):
    """Recording reporter that holds the dispatch thread until released."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def log(self, entry) -> None:
        self.entered.set()
        assert self.release.wait(5)
        super().log(entry)


class SlowReporter(RecordingReporter):
    """Recording reporter that takes a little time per entry."""

    def log(self, entry) -> None:
        time.sleep(0.001)
        super().log(entry)


class TestStop:
    """Stopping the pipeline."""

    def test_stop_then_wait_completes(self, root) -> None:
        """The stopped event is set once the pipeline drains."""
        root.stop(NO_WAIT)
        assert root.stopped().wait(5)
        assert root.running is False

    def test_emit_after_stop_returns_false(self, root, recorder) -> None:
        """No handle of a stopped root delivers anything."""
        child = root.new("child")
        assert root.stop(None) is True

        assert root.info("late") is False
        assert child.err("late") is False
        assert root.info() is False
        assert recorder.entries == []

    def test_stop_twice_is_idempotent(self, root) -> None:
        """A second stop is a no-op and keeps the event set."""
        assert root.stop(None) is True
        done = root.stopped()
        assert root.stop(None) is True
        assert root.stop(NO_WAIT) is True
        assert root.stopped() is done
        assert done.is_set()

    def test_stop_drains_accepted_entries(self, recorder) -> None:
        """Entries accepted before stop are still delivered."""
        logger = RootLogger("parent", Level.INFO, recorder)
        for i in range(50):
            assert logger.info(i)
        assert logger.stop(None) is True
        assert recorder.data == [(i,) for i in range(50)]

    def test_stop_with_timeout_reports_pending_drain(self) -> None:
        """A short timeout returns False while the reporter is busy."""
        reporter = BlockingReporter()
        logger = RootLogger("parent", Level.INFO, reporter)
        producer = threading.Thread(target=logger.info, args=("held",))
        producer.start()
        assert reporter.entered.wait(5)

        assert logger.stop(0.05) is False
        reporter.release.set()
        assert logger.wait(5) is True
        producer.join(5)
        assert reporter.data == [("held",)]

    def test_context_manager_stops_and_drains(self, recorder) -> None:
        """Leaving the with block stops the pipeline."""
        with RootLogger("parent", Level.INFO, recorder) as logger:
            logger.info("inside")
        assert logger.running is False
        assert logger.stopped().is_set()
        assert recorder.data == [("inside",)]

    def test_start_is_noop_when_running(self, root) -> None:
        """start() on a running root keeps the current pipeline."""
        done = root.stopped()
        root.start()
        assert root.stopped() is done

    def test_start_restarts_stopped_root(self, root, recorder) -> None:
        """start() after stop() accepts entries again."""
        root.stop(None)
        root.start()
        assert root.info("again") is True
        root.stop(None)
        assert recorder.data == [("again",)]


class TestStopRace:
    """Producers blocked in the hand-off while stop runs."""

    def test_blocked_producers_finish_cleanly(self) -> None:
        """Placed entries are delivered, waiting producers get False."""
        reporter = BlockingReporter()
        logger = RootLogger("parent", Level.INFO, reporter)
        handoff = logger._state.handoff
        results: dict[str, bool] = {}

        def emit(name: str) -> None:
            results[name] = logger.info(name)

        first = threading.Thread(target=emit, args=("first",))
        first.start()
        assert reporter.entered.wait(5)

        second = threading.Thread(target=emit, args=("second",))
        second.start()
        assert wait_until(lambda: handoff._placed == 2)

        third = threading.Thread(target=emit, args=("third",))
        third.start()
        time.sleep(0.05)

        logger.stop(NO_WAIT)
        third.join(5)
        assert not third.is_alive()
        assert results["third"] is False

        reporter.release.set()
        first.join(5)
        second.join(5)
        assert logger.wait(5) is True
        assert results["first"] is True
        assert results["second"] is True
        assert reporter.data == [("first",), ("second",)]


class TestSetReporter:
    """Swapping the reporter."""

    def test_set_reporter_routes_new_entries(self, root, recorder) -> None:
        """Entries before the swap go to the old reporter only."""
        new_reporter = RecordingReporter()
        root.info("old")
        root.set_reporter(new_reporter)
        root.info("new")
        root.stop(None)

        assert recorder.data == [("old",)]
        assert new_reporter.data == [("new",)]
        assert root.reporter is new_reporter

    def test_set_reporter_func(self, root) -> None:
        """A plain function can act as the reporter."""
        logs = []
        root.set_level(Level.ERR)
        root.set_reporter_func(logs.append)

        assert root.warn("this should be ignored") is False
        assert root.err("Something went", "wrong") is True
        root.stop(None)

        assert len(logs) == 1
        assert logs[0].data == ("Something went", "wrong")
        assert logs[0].level is Level.ERR

    def test_set_reporter_restarts_stopped_root(self, root) -> None:
        """A reporter change brings a stopped root back."""
        root.stop(None)
        assert root.info("dropped") is False

        new_reporter = RecordingReporter()
        root.set_reporter(new_reporter)
        assert root.running is True
        assert root.info("delivered") is True
        root.stop(None)
        assert new_reporter.data == [("delivered",)]

    def test_swap_is_atomic_under_load(self) -> None:
        """No entry leaks across the swap boundary or is lost."""
        old = SlowReporter()
        new_reporter = RecordingReporter()
        logger = RootLogger("parent", Level.INFO, old)
        total = 400
        counters = {"started": 0, "returned": 0}
        results: list[bool] = []

        def produce() -> None:
            for i in range(total):
                counters["started"] = i + 1
                results.append(logger.info(i))
                counters["returned"] = i + 1

        producer = threading.Thread(target=produce)
        producer.start()
        assert wait_until(lambda: len(old.entries) >= 20)

        returned_before = counters["returned"]
        logger.set_reporter(new_reporter)
        started_after = counters["started"]

        producer.join(30)
        logger.stop(None)

        old_seq = [data[0] for data in old.data]
        new_seq = [data[0] for data in new_reporter.data]
        assert all(results)
        assert old_seq + new_seq == list(range(total))
        assert set(range(returned_before)) <= set(old_seq)
        assert all(i in new_seq for i in range(started_after, total))

    def test_concurrent_swaps_and_level_changes(self) -> None:
        """Racing set_level/set_reporter with emitters keeps state sane."""
        reporters = [RecordingReporter() for _ in range(5)]
        logger = RootLogger("parent", Level.INFO, reporters[0])
        stop = threading.Event()
        emitted = []

        def produce(worker: int) -> None:
            child = logger.new(f"worker{worker}")
            seq = 0
            while not stop.is_set():
                if child.info(worker, seq):
                    emitted.append((worker, seq))
                seq += 1

        producers = [
            threading.Thread(target=produce, args=(n,)) for n in range(4)
        ]
        for producer in producers:
            producer.start()
        for reporter in reporters[1:]:
            logger.set_level(Level.EVERYTHING)
            logger.set_reporter(reporter)
            logger.set_level(Level.INFO)
            time.sleep(0.01)
        stop.set()
        for producer in producers:
            producer.join(10)
        logger.stop(None)

        delivered = [d for reporter in reporters for d in reporter.data]
        assert sorted(delivered) == sorted(emitted)
        assert len(delivered) == len(set(delivered))

    def test_swap_drains_producers_blocked_before_it(self) -> None:
        """A producer still waiting for the slot stays with the old one."""
        old = BlockingReporter()
        new_reporter = RecordingReporter()
        logger = RootLogger("parent", Level.INFO, old)
        handoff = logger._state.handoff
        results: dict[str, bool] = {}

        def emit(name: str) -> None:
            results[name] = logger.info(name)

        producers = [
            threading.Thread(target=emit, args=(name,))
            for name in ("a", "b", "c")
        ]
        producers[0].start()
        assert old.entered.wait(5)
        producers[1].start()
        assert wait_until(lambda: handoff._placed == 2)
        producers[2].start()
        assert wait_until(lambda: handoff._waiting == 1)

        swapper = threading.Thread(
            target=logger.set_reporter, args=(new_reporter,)
        )
        swapper.start()
        assert wait_until(lambda: handoff.closed)
        old.release.set()
        swapper.join(5)
        assert not swapper.is_alive()
        for producer in producers:
            producer.join(5)

        assert results == {"a": True, "b": True, "c": True}
        assert old.data == [("a",), ("b",), ("c",)]
        assert new_reporter.data == []

        assert logger.info("d") is True
        logger.stop(None)
        assert new_reporter.data == [("d",)]


class TestDispatchErrors:
    """Misbehaving reporters."""

    def test_reporter_exception_is_logged_and_dispatch_continues(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failing reporter does not stop later deliveries."""
        delivered = []

        def flaky(entry) -> None:
            if entry.data == ("boom",):
                msg = "reporter failure"
                raise RuntimeError(msg)
            delivered.append(entry.data)

        caplog.set_level(logging.ERROR, logger="slog")
        logger = RootLogger("parent", Level.INFO, flaky)
        assert logger.info("boom") is True
        assert logger.info("after") is True
        logger.stop(None)

        assert delivered == [("after",)]
        assert any(
            "failed on entry from parent" in record.getMessage()
            and record.exc_info is not None
            for record in caplog.records
        )

    def test_logging_from_reporter_does_not_deadlock(self) -> None:
        """Re-entrant emits from the dispatch thread return False."""
        results = []
        holder: dict[str, RootLogger] = {}

        def reentrant(entry) -> None:
            results.append(holder["logger"].info("nested"))

        logger = RootLogger("parent", Level.INFO)
        holder["logger"] = logger
        logger.set_reporter(reentrant)
        assert logger.info("outer") is True
        assert logger.stop(5) is True
        assert results == [False]

    def test_set_reporter_from_reporter_raises(self) -> None:
        """Swapping from inside a reporter is rejected."""
        errors = []
        holder: dict[str, RootLogger] = {}

        def swapping(entry) -> None:
            try:
                holder["logger"].set_reporter(RecordingReporter())
            except RuntimeError as e:
                errors.append(str(e))

        logger = RootLogger("parent", Level.INFO, swapping)
        holder["logger"] = logger
        logger.info("outer")
        assert logger.stop(5) is True
        assert errors == ["set_reporter cannot be called from a reporter"]

    @pytest.mark.filterwarnings(
        "ignore::pytest.PytestUnhandledThreadExceptionWarning"
    )
    def test_dispatch_thread_death_stops_root(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """The gate closes with the pipeline when the thread dies."""

        def exiting(entry) -> None:
            raise SystemExit(3)

        caplog.set_level(logging.ERROR, logger="slog")
        logger = RootLogger("parent", Level.INFO, exiting)
        child = logger.new("child")
        assert logger.info("x") is True
        assert logger.stopped().wait(5)

        assert logger.running is False
        assert logger.info() is False
        assert logger.info("y") is False
        assert child.err() is False
        assert "exited while parent was running" in caplog.text

        recorder = RecordingReporter()
        logger.set_reporter(recorder)
        assert logger.info("back") is True
        logger.stop(None)
        assert recorder.data == [("back",)]

    def test_reporter_swapping_during_a_swap_does_not_deadlock(
        self,
    ) -> None:
        """A reporter calling set_reporter mid-swap is rejected at once."""
        entered, release = threading.Event(), threading.Event()
        errors = []
        holder: dict[str, RootLogger] = {}

        def swapping(entry) -> None:
            entered.set()
            assert release.wait(5)
            try:
                holder["logger"].set_reporter(RecordingReporter())
            except RuntimeError as e:
                errors.append(str(e))

        logger = RootLogger("parent", Level.INFO, swapping)
        holder["logger"] = logger
        producer = threading.Thread(target=logger.info, args=("outer",))
        producer.start()
        assert entered.wait(5)

        new_reporter = RecordingReporter()
        swapper = threading.Thread(
            target=logger.set_reporter, args=(new_reporter,)
        )
        swapper.start()
        assert wait_until(lambda: logger._state.restarting)
        release.set()
        swapper.join(5)
        producer.join(5)

        assert not swapper.is_alive()
        assert errors == ["set_reporter cannot be called from a reporter"]
        assert logger.reporter is new_reporter
        assert logger.stop(5) is True

    def test_reporter_stopping_during_a_swap_does_not_deadlock(
        self,
    ) -> None:
        """stop() from a reporter returns while a swap waits on it."""
        entered, release = threading.Event(), threading.Event()
        drained = []
        holder: dict[str, RootLogger] = {}

        def stopping(entry) -> None:
            entered.set()
            assert release.wait(5)
            drained.append(holder["logger"].stop())

        logger = RootLogger("parent", Level.INFO, stopping)
        holder["logger"] = logger
        producer = threading.Thread(target=logger.info, args=("outer",))
        producer.start()
        assert entered.wait(5)

        new_reporter = RecordingReporter()
        swapper = threading.Thread(
            target=logger.set_reporter, args=(new_reporter,)
        )
        swapper.start()
        assert wait_until(lambda: logger._state.restarting)
        release.set()
        swapper.join(5)
        producer.join(5)

        assert not swapper.is_alive()
        assert drained == [False]
        assert logger.running is True
        assert logger.stop(5) is True

    def test_stop_from_reporter(self) -> None:
        """A reporter may stop its own root without waiting on itself."""
        drained = []
        holder: dict[str, RootLogger] = {}

        def stopping(entry) -> None:
            drained.append(holder["logger"].stop(None))

        logger = RootLogger("parent", Level.INFO, stopping)
        holder["logger"] = logger
        assert logger.info("last") is True
        assert logger.stopped().wait(5)

        assert drained == [False]
        assert logger.running is False
        assert logger.info("after") is False


class TestConcurrentProducers:
    """Many producers sharing one pipeline."""

    def test_every_entry_delivered_once_in_producer_order(
        self, recorder
    ) -> None:
        """Per-producer order is preserved and nothing is duplicated."""
        logger = RootLogger("parent", Level.INFO, recorder)
        workers, per_worker = 8, 200

        def produce(worker: int) -> None:
            child = logger.new(f"worker{worker}")
            for seq in range(per_worker):
                assert child.info(worker, seq)

        threads = [
            threading.Thread(target=produce, args=(n,))
            for n in range(workers)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(30)
        logger.stop(None)

        assert len(recorder.entries) == workers * per_worker
        for worker in range(workers):
            seqs = [d[1] for d in recorder.data if d[0] == worker]
            assert seqs == list(range(per_worker))
        for entry in recorder.entries:
            assert entry.source == ("parent", f"worker{entry.data[0]}")
