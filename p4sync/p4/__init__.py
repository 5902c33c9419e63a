# P4Sync Perforce Module
# Perforce command execution and sync listing

from p4sync.p4.errors import P4ConnectionError, P4Error
from p4sync.p4.operations import (
    normalize_subtree,
    parse_preview,
    preview_sync,
    sync_file,
)

__all__ = [
    "P4Error",
    "P4ConnectionError",
    "sync_file",
    "preview_sync",
    "parse_preview",
    "normalize_subtree",
]
