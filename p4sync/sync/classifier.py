# P4Sync Result Classifier
# Maps the text printed by one ``p4 sync`` invocation to an outcome

from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Transport and session failures. Any of these aborts the whole run.
CONNECTION_ERRORS: tuple[str, ...] = (
    "Connect to server failed; check $P4PORT.",
    "Your session has expired, please login again.",
    "Perforce password (P4PASSWD) invalid or unset.",
    "RpcTransport: partial message read",
    "TCP receive failed.",
    "read: socket: WSAECONNRESET",
)

CLOBBER_MARKER = "Can't clobber writable file"
RESOLVE_MARKER = "must resolve #head"
ERROR_MARKER = "error: "
RESULT_DELIMITER = " - "


class OutcomeKind(str, Enum):
    """Classification of a single sync invocation."""

    SUCCESS = "success"
    CLOBBER_CONFLICT = "clobber_conflict"
    NEEDS_RESOLVE = "needs_resolve"
    GENERIC_ERROR = "generic_error"
    CONNECTION_FATAL = "connection_fatal"


class SuccessKind(str, Enum):
    """What a successful sync did to the file."""

    UPDATED = "updated"
    ADDED = "added"
    DELETED = "deleted"


# Prefix of the text after " - " on the first line -> success subtype
SUCCESS_PREFIXES: tuple[tuple[str, SuccessKind], ...] = (
    ("updating", SuccessKind.UPDATED),
    ("added as", SuccessKind.ADDED),
    ("deleted as", SuccessKind.DELETED),
)


@dataclass(frozen=True)
class Outcome:
    """Classified result of one invocation."""

    kind: OutcomeKind
    success: Optional[SuccessKind] = None
    message: str = ""

    @property
    def is_fatal(self) -> bool:
        return self.kind == OutcomeKind.CONNECTION_FATAL

    @property
    def is_error(self) -> bool:
        return self.kind in (OutcomeKind.GENERIC_ERROR, OutcomeKind.CONNECTION_FATAL)


def is_connection_error(output: str) -> bool:
    """Check whether p4 output reports a transport or login failure."""
    return any(phrase in output for phrase in CONNECTION_ERRORS)


def _connection_phrase(output: str) -> Optional[str]:
    for phrase in CONNECTION_ERRORS:
        if phrase in output:
            return phrase
    return None


def classify(output: str) -> Outcome:
    """
    Classify the output of ``p4 -s sync <file>#head``.

    Checks run in a fixed order and the first match wins, because the
    connection and conflict phrases can appear next to other text.
    Unrecognised output is an unclassified success, never an error.

    Args:
        output: Complete captured text of the invocation.

    Returns:
        Outcome for the invocation.
    """
    phrase = _connection_phrase(output)
    if phrase is not None:
        return Outcome(OutcomeKind.CONNECTION_FATAL, message=phrase)

    lowered = output.lower()
    if CLOBBER_MARKER.lower() in lowered:
        return Outcome(OutcomeKind.CLOBBER_CONFLICT)

    if RESOLVE_MARKER.lower() in lowered:
        return Outcome(OutcomeKind.NEEDS_RESOLVE)

    index = output.find(ERROR_MARKER)
    if index != -1:
        return Outcome(OutcomeKind.GENERIC_ERROR, message=output[index:].strip())

    first_line = output.split("\n", 1)[0].rstrip("\r")
    _, sep, result = first_line.partition(RESULT_DELIMITER)
    if not sep:
        result = first_line
    result = result.lstrip().lower()

    for prefix, kind in SUCCESS_PREFIXES:
        if result.startswith(prefix):
            return Outcome(OutcomeKind.SUCCESS, success=kind)

    return Outcome(OutcomeKind.SUCCESS)
