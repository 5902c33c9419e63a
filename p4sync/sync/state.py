# P4Sync Sync State
# Thread-safe counters, resolve list and fatal flag for one run

import threading
from dataclasses import dataclass, field
from typing import Optional

from p4sync.sync.classifier import SuccessKind


@dataclass(frozen=True)
class SyncReport:
    """Read-only snapshot of a run, taken after all workers have joined."""

    errors: int = 0
    clobbered: int = 0
    updated: int = 0
    added: int = 0
    deleted: int = 0
    needs_resolve: tuple[str, ...] = ()
    error_messages: tuple[tuple[str, str], ...] = ()
    fatal: bool = False
    fatal_reason: Optional[str] = None
    total: int = 0
    dispatched: int = 0

    @property
    def conflicts(self) -> int:
        """Number of files that need a manual resolve."""
        return len(self.needs_resolve)

    @property
    def synced(self) -> int:
        return self.updated + self.added + self.deleted

    @property
    def remaining(self) -> int:
        """Targets never dispatched because the run was aborted."""
        return max(self.total - self.dispatched, 0)

    @property
    def success(self) -> bool:
        return self.errors == 0 and not self.fatal

    @property
    def has_issues(self) -> bool:
        return not self.success or self.clobbered > 0 or self.conflicts > 0


@dataclass
class SyncState:
    """
    Aggregate state shared by all workers of a run.

    Every mutation goes through one lock, so no increment is lost. The
    fatal flag is an Event so workers and the orchestrator can poll it
    without taking the lock.
    """

    errors: int = 0
    clobbered: int = 0
    updated: int = 0
    added: int = 0
    deleted: int = 0
    needs_resolve: list[str] = field(default_factory=list)
    error_messages: list[tuple[str, str]] = field(default_factory=list)
    dispatched: int = 0
    fatal_reason: Optional[str] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    _fatal: threading.Event = field(default_factory=threading.Event, repr=False, compare=False)

    @property
    def fatal(self) -> bool:
        return self._fatal.is_set()

    def record_success(self, kind: SuccessKind) -> None:
        """Count a successful update, add or delete."""
        with self._lock:
            if kind == SuccessKind.UPDATED:
                self.updated += 1
            elif kind == SuccessKind.ADDED:
                self.added += 1
            elif kind == SuccessKind.DELETED:
                self.deleted += 1

    def record_dispatch(self) -> int:
        """Count one target handed to the external sync; returns its 1-based index."""
        with self._lock:
            self.dispatched += 1
            return self.dispatched

    def record_clobber(self) -> None:
        with self._lock:
            self.clobbered += 1

    def record_error(self, target: str, message: str = "") -> None:
        with self._lock:
            self.errors += 1
            if message:
                self.error_messages.append((target, message))

    def add_needs_resolve(self, target: str) -> None:
        with self._lock:
            self.needs_resolve.append(target)

    def trip(self, reason: str = "") -> None:
        """
        Set the fatal flag. Idempotent; the first reason is kept.

        Args:
            reason: Human-readable cause shown in the summary.
        """
        with self._lock:
            if self.fatal_reason is None and reason:
                self.fatal_reason = reason
            self._fatal.set()

    def snapshot(self, *, total: int = 0) -> SyncReport:
        """
        Copy the current values into an immutable report.

        Args:
            total: Number of targets that were queued.
        """
        with self._lock:
            return SyncReport(
                errors=self.errors,
                clobbered=self.clobbered,
                updated=self.updated,
                added=self.added,
                deleted=self.deleted,
                needs_resolve=tuple(self.needs_resolve),
                error_messages=tuple(self.error_messages),
                fatal=self._fatal.is_set(),
                fatal_reason=self.fatal_reason,
                total=total,
                dispatched=self.dispatched,
            )
