"""Click-based CLI for P4Sync - parallel Perforce sync."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from p4sync import __version__
from p4sync.config import ensure_config_exists, get_config_path, load_config, validate_config_file
from p4sync.config.schema import P4SyncConfig
from p4sync.output import Console, create_console
from p4sync.p4 import P4Error, normalize_subtree, preview_sync, sync_file
from p4sync.sync import SyncEngine


def _load_config_or_exit(console: Console, config_path: Optional[Path]) -> P4SyncConfig:
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        console.print_error(str(e))
        sys.exit(1)
    except ValidationError as e:
        console.print_error(f"Invalid configuration: {e}")
        sys.exit(1)
    except ValueError as e:
        console.print_error(str(e))
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="p4sync")
def cli() -> None:
    """P4Sync - parallel Perforce sync.

    Syncs every out-of-date file of a depot subtree with its own
    `p4 sync` call, several files at a time.

    \b
    Outcomes:
      updated / added / deleted   file synced
      clobbered                   writable file overwritten with a forced sync
      conflict                    file must be resolved by hand
    """
    pass


@cli.command()
@click.argument("subtrees", nargs=-1)
@click.option(
    "--threads",
    "-t",
    type=click.IntRange(min=1),
    default=None,
    envvar="P4SYNC_THREADS",
    help="Number of parallel sync workers (default: from config, 8)",
)
@click.option("--root", "-r", default=None, help="Depot root that SUBTREES are relative to")
@click.option("--dry-run", "-n", is_flag=True, help="List files that would be synced without syncing")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None, help="Configuration file")
def sync(
    subtrees: tuple[str, ...],
    threads: Optional[int],
    root: Optional[str],
    dry_run: bool,
    verbose: bool,
    no_color: bool,
    config_path: Optional[Path],
) -> None:
    """Sync depot subtrees to head, one file per p4 call.

    SUBTREES are paths below the depot root. Without any, the whole
    root is synced.

    \b
    Examples:
        p4sync sync                     # Sync the whole depot root
        p4sync sync Engine Content/Maps # Sync two subtrees
        p4sync sync -t 16 Tools         # Use 16 workers
        p4sync sync --dry-run           # Only list files to sync
    """
    config = _load_config_or_exit(create_console(), config_path)

    console = create_console(
        verbose=verbose or config.output.verbose,
        colored=config.output.colored and not no_color,
    )

    depot_root = root or config.depot_root
    if not depot_root.endswith("/"):
        depot_root += "/"
    num_threads = threads or config.threads
    executable = config.p4.executable
    cwd = Path(config.p4.workspace) if config.p4.workspace else None

    directories = [normalize_subtree(depot_root, subtree) for subtree in subtrees]
    if not directories:
        directories = [normalize_subtree(depot_root)]

    console.print_info(f"Starting sync with {num_threads} threads")

    targets: list[str] = []
    for directory in directories:
        console.print_info(f"Syncing {directory}")
        try:
            found = preview_sync(directory, executable=executable, cwd=cwd)
        except P4Error as e:
            console.print_error(e.message)
            sys.exit(1)
        console.print_debug(f"{len(found)} file(s) to sync in {directory}")
        targets.extend(found)

    if dry_run:
        console.print_targets(list(dict.fromkeys(targets)))
        return

    def run_sync(target: str, force: bool) -> str:
        return sync_file(target, force=force, executable=executable, cwd=cwd)

    engine = SyncEngine(
        run_sync,
        threads=num_threads,
        idle_interval=config.idle_interval,
        poll_interval=config.poll_interval,
        on_outcome=console.print_outcome,
        on_dispatch=console.print_dispatch,
    )
    report = engine.run(targets)

    console.print_sync_summary(report)

    if not report.success:
        sys.exit(1)


# ============================================================================
# Configuration Commands
# ============================================================================


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("init")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None, help="Configuration file")
def config_init(config_path: Optional[Path]) -> None:
    """Create a default configuration file."""
    console = create_console()
    path, created = ensure_config_exists(config_path)
    if created:
        console.print_success(f"Created configuration: {path}")
    else:
        console.print_info(f"Configuration already exists: {path}")


@config.command("show")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None, help="Configuration file")
def config_show(config_path: Optional[Path]) -> None:
    """Show the effective configuration."""
    console = create_console()
    loaded = _load_config_or_exit(console, config_path)
    console.print_config(loaded, str(config_path or get_config_path()))


@config.command("validate")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None, help="Configuration file")
def config_validate(config_path: Optional[Path]) -> None:
    """Validate the configuration file."""
    console = create_console()
    is_valid, errors = validate_config_file(config_path)
    if is_valid:
        console.print_success("Configuration is valid")
        return

    for error in errors:
        console.print_error(error)
    sys.exit(1)
