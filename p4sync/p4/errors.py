# P4Sync Perforce Errors


class P4Error(Exception):
    """Exception raised when a p4 command cannot be run or understood."""

    def __init__(self, message: str, returncode: int = 1, output: str = ""):
        self.message = message
        self.returncode = returncode
        self.output = output
        super().__init__(message)


class P4ConnectionError(P4Error):
    """The server connection or login session is unusable."""
