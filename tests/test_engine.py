# P4Sync Engine Tests
# Tests for the worker pool, outcome handling and circuit breaker

import threading
import time
from collections import Counter

import pytest

from p4sync.p4.errors import P4Error
from p4sync.sync.classifier import Outcome, OutcomeKind, SuccessKind
from p4sync.sync.engine import SyncEngine

CLOBBER = "error: Can't clobber writable file /ws/{0}\nexit: 1"
RESOLVE = "error: {0} - must resolve #head before submitting\nexit: 1"
UPDATED = "info: {0}#3 - updating /ws/{0}\nexit: 0"
ADDED = "info: {0}#1 - added as /ws/{0}\nexit: 0"
DELETED = "info: {0}#2 - deleted as /ws/{0}\nexit: 0"
GENERIC = "error: {0} - no such file(s).\nexit: 1"
TCP_FAILURE = "error: TCP receive failed.\nexit: 1"


def _engine(sync_fn, threads: int = 4, **kwargs) -> SyncEngine:
    return SyncEngine(sync_fn, threads=threads, idle_interval=0.001, poll_interval=0.005, **kwargs)


def _targets(count: int) -> list[str]:
    return [f"//depot/dir/file{i}.txt" for i in range(count)]


class TestSyncEngineInit:
    """Tests for engine construction."""

    def test_rejects_zero_threads(self, fake_p4):
        with pytest.raises(ValueError):
            SyncEngine(fake_p4, threads=0)


class TestEmptyBacklog:
    """An empty backlog finishes at once."""

    @pytest.mark.parametrize("threads", [1, 8])
    def test_no_invocation_and_zero_report(self, fake_p4, threads: int):
        start = time.monotonic()
        report = _engine(fake_p4, threads=threads).run([])
        assert time.monotonic() - start < 1
        assert fake_p4.calls == []
        assert report.errors == 0
        assert report.synced == 0
        assert report.clobbered == 0
        assert report.conflicts == 0
        assert report.total == 0
        assert not report.fatal


class TestDispatch:
    """Every target goes to exactly one invocation."""

    @pytest.mark.parametrize("threads,count", [(1, 1), (1, 25), (3, 10), (8, 200), (32, 5)])
    def test_each_target_dispatched_once(self, fake_p4, threads: int, count: int):
        targets = _targets(count)
        report = _engine(fake_p4, threads=threads).run(targets)

        dispatched = Counter(fake_p4.normal_calls())
        assert set(dispatched) == set(targets)
        assert all(n == 1 for n in dispatched.values())
        assert report.updated == count
        assert report.dispatched == count
        assert report.remaining == 0

    def test_mixed_outcomes_add_up(self, fake_p4_factory):
        targets = _targets(60)
        templates = [ADDED, DELETED, CLOBBER, RESOLVE, GENERIC, UPDATED]
        fake = fake_p4_factory({t: templates[i % 6].format(t) for i, t in enumerate(targets)})

        report = _engine(fake, threads=5).run(targets)

        assert report.added == 10
        assert report.deleted == 10
        assert report.clobbered == 10
        assert report.conflicts == 10
        assert report.errors == 10
        assert report.updated == 10
        total = report.synced + report.errors + report.clobbered + report.conflicts
        assert total == len(targets)
        assert not report.fatal

    def test_unclassified_output_is_not_counted(self, fake_p4_factory):
        fake = fake_p4_factory({"//depot/a": "//depot/a#1 - refreshing /ws/a"})
        report = _engine(fake, threads=1).run(["//depot/a"])
        assert report.synced == 0
        assert report.errors == 0
        assert report.success

    def test_duplicate_targets_synced_once(self, fake_p4):
        report = _engine(fake_p4, threads=4).run(["//depot/a", "//depot/b", "//depot/a"])
        assert sorted(fake_p4.normal_calls()) == ["//depot/a", "//depot/b"]
        assert report.total == 2

    def test_callbacks(self, fake_p4_factory):
        fake = fake_p4_factory({"//depot/a": ADDED.format("//depot/a")})
        outcomes = []
        dispatches = []
        lock = threading.Lock()

        def on_outcome(target, outcome):
            with lock:
                outcomes.append((target, outcome))

        def on_dispatch(target, index, total):
            with lock:
                dispatches.append((target, index, total))

        _engine(fake, threads=2, on_outcome=on_outcome, on_dispatch=on_dispatch).run(["//depot/a", "//depot/b"])

        assert sorted(index for _, index, _ in dispatches) == [1, 2]
        assert all(total == 2 for _, _, total in dispatches)
        assert dict(outcomes)["//depot/a"] == Outcome(OutcomeKind.SUCCESS, success=SuccessKind.ADDED)


class TestClobber:
    """A clobber triggers exactly one forced retry."""

    def test_single_forced_retry(self, fake_p4_factory):
        target = "//depot/locked.txt"
        fake = fake_p4_factory({target: CLOBBER.format(target)})
        report = _engine(fake, threads=2).run([target])

        assert fake.normal_calls() == [target]
        assert fake.forced_calls() == [target]
        assert report.clobbered == 1
        assert report.errors == 0

    def test_lowercase_clobber_phrase_forces_retry(self, fake_p4_factory):
        target = "//depot/a.txt"
        fake = fake_p4_factory({target: "error: can't clobber writable file /ws/a.txt\nexit: 1"})
        report = _engine(fake, threads=1).run([target])

        assert fake.calls == [(target, False), (target, True)]
        assert report.clobbered == 1
        assert report.errors == 0

    def test_retry_output_not_reclassified(self, fake_p4_factory):
        target = "//depot/locked.txt"
        fake = fake_p4_factory(
            {target: CLOBBER.format(target)},
            forced_outputs={target: CLOBBER.format(target)},
        )
        report = _engine(fake, threads=1).run([target])

        assert fake.forced_calls() == [target]
        assert report.clobbered == 1
        assert report.errors == 0
        assert report.success

    def test_retry_error_not_counted(self, fake_p4_factory):
        target = "//depot/locked.txt"
        fake = fake_p4_factory({target: CLOBBER.format(target)}, forced_outputs={target: GENERIC.format(target)})
        report = _engine(fake, threads=1).run([target])
        assert report.errors == 0
        assert report.clobbered == 1

    def test_retry_connection_failure_trips_breaker(self, fake_p4_factory):
        targets = _targets(20)
        first = targets[-1]
        fake = fake_p4_factory({first: CLOBBER.format(first)}, forced_outputs={first: TCP_FAILURE})
        # A single worker pops from the end, so the clobbered file comes first
        report = _engine(fake, threads=1).run(targets)

        assert report.fatal
        assert report.clobbered == 1
        assert report.errors == 0
        assert fake.normal_calls() == [first]

    def test_retry_execution_failure_trips_breaker(self):
        def sync_fn(target: str, force: bool) -> str:
            if force:
                raise P4Error("p4 command not found")
            return CLOBBER.format(target)

        report = _engine(sync_fn, threads=1).run(["//depot/locked.txt"])
        assert report.fatal
        assert report.fatal_reason == "p4 command not found"


class TestResolve:
    """Files needing resolve are collected, not retried."""

    def test_collected_once(self, fake_p4_factory):
        targets = _targets(10)
        fake = fake_p4_factory({t: RESOLVE.format(t) for t in targets[:4]})
        report = _engine(fake, threads=3).run(targets)

        assert sorted(report.needs_resolve) == sorted(targets[:4])
        assert report.errors == 0
        assert fake.forced_calls() == []
        assert report.updated == 6


class TestGenericErrors:
    """Generic errors are counted and the run continues."""

    def test_errors_do_not_stop_run(self, fake_p4_factory):
        targets = _targets(12)
        fake = fake_p4_factory({t: GENERIC.format(t) for t in targets[::2]})
        report = _engine(fake, threads=2).run(targets)

        assert report.errors == 6
        assert report.updated == 6
        assert not report.fatal
        assert len(report.error_messages) == 6
        assert all(msg.startswith("error: ") for _, msg in report.error_messages)

    def test_unexpected_exception_counted_as_error(self):
        def sync_fn(target: str, force: bool) -> str:
            if target.endswith("bad"):
                raise ValueError("boom")
            return "updating " + target

        report = _engine(sync_fn, threads=2).run(["//depot/ok", "//depot/bad"])
        assert report.errors == 1
        assert report.updated == 1
        assert report.error_messages == (("//depot/bad", "ValueError: boom"),)
        assert not report.fatal


class TestCircuitBreaker:
    """A connection failure stops every worker."""

    def test_fatal_output_stops_run(self):
        targets = _targets(500)
        poisoned = set(targets[100:110])

        def sync_fn(target: str, force: bool) -> str:
            time.sleep(0.001)
            if target in poisoned:
                return TCP_FAILURE
            return UPDATED.format(target)

        report = _engine(sync_fn, threads=4).run(targets)

        assert report.fatal
        assert report.fatal_reason == "TCP receive failed."
        assert report.errors >= 1
        assert report.dispatched < len(targets)
        assert report.remaining == len(targets) - report.dispatched

    def test_execution_failure_is_fatal(self):
        def sync_fn(target: str, force: bool) -> str:
            raise P4Error("p4 command not found. Is the Perforce client installed?")

        report = _engine(sync_fn, threads=3).run(_targets(50))

        assert report.fatal
        assert 1 <= report.errors <= 3
        assert report.dispatched == report.errors

    def test_single_worker_stops_at_first_fatal(self, fake_p4_factory):
        targets = _targets(30)
        fake = fake_p4_factory({targets[-1]: "Perforce password (P4PASSWD) invalid or unset."})
        report = _engine(fake, threads=1).run(targets)

        assert fake.calls == [(targets[-1], False)]
        assert report.errors == 1
        assert report.remaining == 29

    def test_workers_stop_invoking_after_fatal(self):
        targets = _targets(200)
        calls_after_fatal = []
        lock = threading.Lock()
        engine = None

        def sync_fn(target: str, force: bool) -> str:
            if engine.state.fatal:
                with lock:
                    calls_after_fatal.append(target)
            if target == targets[150]:
                return "Your session has expired, please login again."
            time.sleep(0.001)
            return UPDATED.format(target)

        engine = _engine(sync_fn, threads=6)
        report = engine.run(targets)

        assert report.fatal
        # Only a worker that passed its check just before the trip may still call
        assert len(calls_after_fatal) <= 5
        assert report.dispatched < len(targets)

    def test_in_flight_calls_complete_and_workers_join(self):
        targets = _targets(8)
        started = threading.Semaphore(0)
        engine = None

        def sync_fn(target: str, force: bool) -> str:
            if target == targets[-1]:
                # Fail only once the other workers are inside their call
                for _ in range(3):
                    started.acquire(timeout=2)
                return "RpcTransport: partial message read"
            started.release()
            deadline = time.monotonic() + 2
            while not engine.state.fatal and time.monotonic() < deadline:
                time.sleep(0.001)
            return UPDATED.format(target)

        engine = _engine(sync_fn, threads=4)
        report = engine.run(targets)

        assert report.fatal
        assert report.errors == 1
        # The three in-flight invocations finished and were counted
        assert report.updated == 3
        assert report.dispatched == 4
        assert report.remaining == 4


class TestStress:
    """Many fast invocations lose no counter updates."""

    def test_no_lost_updates(self, fake_p4_factory):
        targets = _targets(3000)
        templates = [ADDED, DELETED, UPDATED]
        fake = fake_p4_factory({t: templates[i % 3].format(t) for i, t in enumerate(targets)})

        report = _engine(fake, threads=16).run(targets)

        assert report.added == 1000
        assert report.deleted == 1000
        assert report.updated == 1000
        assert len(fake.calls) == 3000
