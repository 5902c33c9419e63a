# P4Sync Sync Module
# Parallel dispatch, classification and aggregation of per-file syncs

from p4sync.sync.backlog import Backlog
from p4sync.sync.classifier import (
    CONNECTION_ERRORS,
    Outcome,
    OutcomeKind,
    SuccessKind,
    classify,
    is_connection_error,
)
from p4sync.sync.engine import SyncEngine
from p4sync.sync.state import SyncReport, SyncState

__all__ = [
    # Backlog
    "Backlog",
    # Classifier
    "CONNECTION_ERRORS",
    "Outcome",
    "OutcomeKind",
    "SuccessKind",
    "classify",
    "is_connection_error",
    # State
    "SyncState",
    "SyncReport",
    # Engine
    "SyncEngine",
]
