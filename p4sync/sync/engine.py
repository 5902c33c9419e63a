# P4Sync Sync Engine
# Worker pool that syncs files in parallel and aggregates the outcomes

import threading
import time
from collections.abc import Callable, Iterable
from typing import Optional

from p4sync.p4.errors import P4Error
from p4sync.sync.backlog import Backlog
from p4sync.sync.classifier import Outcome, OutcomeKind, classify, is_connection_error
from p4sync.sync.state import SyncReport, SyncState

# (target, force) -> captured output
SyncFunction = Callable[[str, bool], str]
OutcomeCallback = Callable[[str, Outcome], None]
DispatchCallback = Callable[[str, int, int], None]

DEFAULT_THREADS = 8
DEFAULT_IDLE_INTERVAL = 0.002
DEFAULT_POLL_INTERVAL = 0.1


class SyncEngine:
    """
    Parallel per-file sync.

    Workers pull targets from a shared backlog, run the external sync for
    each, classify the output and update a shared SyncState. A connection
    failure on any worker trips the fatal flag and every worker stops
    before its next invocation.
    """

    def __init__(
        self,
        sync_fn: SyncFunction,
        *,
        threads: int = DEFAULT_THREADS,
        idle_interval: float = DEFAULT_IDLE_INTERVAL,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_outcome: Optional[OutcomeCallback] = None,
        on_dispatch: Optional[DispatchCallback] = None,
    ):
        """
        Initialize sync engine.

        Args:
            sync_fn: External sync invocation. Raises P4Error if the
                command could not be run at all.
            threads: Number of worker threads.
            idle_interval: Seconds a worker waits for a target before
                re-checking the fatal flag.
            poll_interval: Seconds between orchestrator completion checks.
            on_outcome: Called on the worker thread after each classification.
            on_dispatch: Called on the worker thread before each invocation
                with (target, index, total).
        """
        if threads < 1:
            raise ValueError(f"threads must be at least 1, got {threads}")

        self.sync_fn = sync_fn
        self.threads = threads
        self.idle_interval = idle_interval
        self.poll_interval = poll_interval
        self.on_outcome = on_outcome
        self.on_dispatch = on_dispatch
        self.backlog = Backlog()
        self.state = SyncState()

    def run(self, targets: Iterable[str]) -> SyncReport:
        """
        Sync every target and return the final report.

        Args:
            targets: Depot paths to sync.

        Returns:
            SyncReport read after all workers have joined.
        """
        self.backlog.fill(targets)
        self.backlog.close()

        if self.backlog.is_empty():
            return self.state.snapshot(total=0)

        workers = [
            threading.Thread(target=self._worker, name=f"p4sync-worker-{i}", daemon=True)
            for i in range(self.threads)
        ]
        for worker in workers:
            worker.start()

        while not self.backlog.drained and not self.state.fatal and any(w.is_alive() for w in workers):
            time.sleep(self.poll_interval)

        for worker in workers:
            worker.join()

        return self.state.snapshot(total=self.backlog.total)

    def _worker(self) -> None:
        while not self.state.fatal:
            target = self.backlog.take(timeout=self.idle_interval)
            if target is None:
                if self.backlog.drained:
                    break
                continue
            # The flag may have been set while waiting for the target
            if self.state.fatal:
                break
            if not self._process(target):
                break

    def _process(self, target: str) -> bool:
        """
        Sync one target and apply its outcome.

        Returns:
            False if the worker must stop.
        """
        index = self.state.record_dispatch()
        if self.on_dispatch:
            self.on_dispatch(target, index, self.backlog.total)

        try:
            output = self.sync_fn(target, False)
        except P4Error as e:
            outcome = Outcome(OutcomeKind.CONNECTION_FATAL, message=e.message)
        except Exception as e:
            outcome = Outcome(OutcomeKind.GENERIC_ERROR, message=f"{type(e).__name__}: {e}")
        else:
            outcome = classify(output)

        if self.on_outcome:
            self.on_outcome(target, outcome)

        return self.apply(target, outcome)

    def apply(self, target: str, outcome: Outcome) -> bool:
        """
        Update shared state for a classified outcome.

        Args:
            target: The synced depot path.
            outcome: Its classification.

        Returns:
            False if the calling worker must stop.
        """
        if outcome.kind == OutcomeKind.SUCCESS:
            if outcome.success is not None:
                self.state.record_success(outcome.success)
            return True

        if outcome.kind == OutcomeKind.CLOBBER_CONFLICT:
            self.state.record_clobber()
            return self._force_sync(target)

        if outcome.kind == OutcomeKind.NEEDS_RESOLVE:
            self.state.add_needs_resolve(target)
            return True

        if outcome.kind == OutcomeKind.GENERIC_ERROR:
            self.state.record_error(target, outcome.message)
            return True

        # CONNECTION_FATAL
        self.state.record_error(target, outcome.message)
        self.state.trip(outcome.message or "Connection to server failed")
        return False

    def _force_sync(self, target: str) -> bool:
        """
        Re-sync a clobbered file once in forced mode.

        The retry output is not classified or counted; only a connection
        failure is acted upon.
        """
        try:
            output = self.sync_fn(target, True)
        except P4Error as e:
            self.state.trip(e.message)
            return False

        if is_connection_error(output):
            self.state.trip(f"Connection failed during forced sync of {target}")
            return False
        return True
