# P4Sync Perforce Operations
# p4 command execution and preview listing

import subprocess
from pathlib import Path
from typing import Optional

from p4sync.p4.errors import P4ConnectionError, P4Error
from p4sync.sync.classifier import is_connection_error

UP_TO_DATE_MARKER = "file(s) up-to-date."


def _run_p4(
    *args: str,
    executable: str = "p4",
    cwd: Optional[Path] = None,
    merge_stderr: bool = True,
) -> subprocess.CompletedProcess[str]:
    """
    Run a p4 command.

    p4 reports per-file failures in its text output, so a non-zero exit
    status is not treated as an error here.

    Args:
        *args: p4 command arguments.
        executable: Name or path of the p4 binary.
        cwd: Working directory (selects the client workspace).
        merge_stderr: Fold stderr into stdout.

    Returns:
        CompletedProcess with result.

    Raises:
        P4Error: If the command could not be executed at all.
    """
    cmd = [executable, *args]
    try:
        return subprocess.run(
            cmd,
            cwd=cwd,
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
            text=True,
        )
    except FileNotFoundError:
        raise P4Error(f"{executable} command not found. Is the Perforce client installed?")
    except OSError as e:
        raise P4Error(f"Failed to run {' '.join(cmd)}: {e}")


def sync_file(
    target: str,
    *,
    force: bool = False,
    executable: str = "p4",
    cwd: Optional[Path] = None,
) -> str:
    """
    Sync a single file to head revision.

    Args:
        target: Depot path of the file.
        force: Overwrite writable files (``p4 sync -f``).
        executable: Name or path of the p4 binary.
        cwd: Working directory.

    Returns:
        Combined stdout/stderr text of the command.

    Raises:
        P4Error: If p4 could not be executed.
    """
    if force:
        args = ["sync", "-f", target]
    else:
        args = ["-s", "sync", f"{target}#head"]
    result = _run_p4(*args, executable=executable, cwd=cwd)
    return result.stdout or ""


def parse_preview(text: str) -> list[str]:
    """
    Extract depot paths from ``p4 sync -n`` output.

    Each line looks like ``//depot/path/file.txt#3 - updating /ws/file.txt``;
    the target is everything before the first ``#``.

    Raises:
        P4Error: If a line has no revision marker.
    """
    targets: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.endswith(UP_TO_DATE_MARKER):
            continue
        path, sep, _ = line.partition("#")
        if not sep:
            raise P4Error(f"Error while parsing tosync list: {line}", output=text)
        targets.append(path)
    return targets


def preview_sync(
    directory: str,
    *,
    executable: str = "p4",
    cwd: Optional[Path] = None,
) -> list[str]:
    """
    List files that a sync of ``directory`` would touch.

    Args:
        directory: Depot directory without the trailing wildcard.
        executable: Name or path of the p4 binary.
        cwd: Working directory.

    Returns:
        Depot paths in the order p4 reported them.

    Raises:
        P4ConnectionError: If p4 could not reach the server or log in.
        P4Error: If p4 could not be executed or its output is malformed.
    """
    result = _run_p4("sync", "-n", f"{directory}/...", executable=executable, cwd=cwd, merge_stderr=False)
    stdout = result.stdout or ""
    stderr = result.stderr or ""

    if is_connection_error(stdout) or is_connection_error(stderr):
        raise P4ConnectionError(
            f"Connection to Perforce server failed: {stderr.strip() or stdout.strip()}",
            returncode=result.returncode,
            output=stdout + stderr,
        )

    return parse_preview(stdout)


def normalize_subtree(root: str, subtree: Optional[str] = None) -> str:
    """
    Build the depot directory to sync.

    Trailing ``/``, ``.`` and ``*`` are stripped so that ``foo/``,
    ``foo/...`` and ``foo/*`` all name the same directory.

    Args:
        root: Depot root, e.g. ``//depot/Main/``.
        subtree: Optional path below the root.

    Returns:
        Directory path without trailing wildcard.
    """
    directory = root + (subtree or "")
    return directory.rstrip("/.*")
