# P4Sync Backlog
# Shared collection of pending sync targets

import threading
from collections.abc import Iterable
from typing import Optional


class Backlog:
    """
    Pending sync targets shared by all workers.

    Filled by the orchestrator before workers start, then drained.
    Each target is handed to exactly one caller; no ordering is promised.
    """

    def __init__(self) -> None:
        self._items: list[str] = []
        self._seen: set[str] = set()
        self._closed = False
        self._total = 0
        self._taken = 0
        self._cond = threading.Condition(threading.Lock())

    def fill(self, targets: Iterable[str]) -> int:
        """
        Add targets to the backlog.

        Targets already added once are ignored.

        Returns:
            Number of targets actually added.
        """
        with self._cond:
            if self._closed:
                raise RuntimeError("Cannot fill a closed backlog")
            added = []
            for target in targets:
                if target not in self._seen:
                    self._seen.add(target)
                    added.append(target)
            self._items.extend(added)
            self._total += len(added)
            self._cond.notify_all()
            return len(added)

    def close(self) -> None:
        """Mark that no more targets will be added and wake blocked takers."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def try_take(self) -> Optional[str]:
        """Remove and return one target, or None if the backlog is empty."""
        with self._cond:
            return self._pop()

    def take(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Remove and return one target, waiting for one if necessary.

        Args:
            timeout: Maximum seconds to wait. None waits until a target
                arrives or the backlog is closed.

        Returns:
            A target, or None on timeout or when closed and empty.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._items or self._closed, timeout=timeout)
            return self._pop()

    def _pop(self) -> Optional[str]:
        if not self._items:
            return None
        self._taken += 1
        return self._items.pop()

    def is_empty(self) -> bool:
        with self._cond:
            return not self._items

    @property
    def drained(self) -> bool:
        """True once closed and every target has been handed out."""
        with self._cond:
            return self._closed and not self._items

    @property
    def total(self) -> int:
        with self._cond:
            return self._total

    @property
    def taken(self) -> int:
        with self._cond:
            return self._taken

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)
