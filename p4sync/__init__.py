"""P4Sync - parallel Perforce sync.

Syncs a depot subtree file by file with a pool of worker threads,
forcing clobbered files and collecting files that need a resolve.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "SyncEngine",
    "SyncReport",
    "SyncState",
    "Outcome",
    "OutcomeKind",
    "SuccessKind",
    "classify",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("SyncEngine", "SyncReport", "SyncState", "Outcome", "OutcomeKind", "SuccessKind", "classify"):
        from p4sync import sync

        return getattr(sync, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
