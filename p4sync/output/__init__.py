# P4Sync Output Module
# Rich console output

from p4sync.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
