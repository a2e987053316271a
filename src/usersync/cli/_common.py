"""Shared utilities for all CLI command modules.

Provides the Rich console, logging setup, container construction
and outcome rendering used by every command group.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from rich.console import Console

from .. import USERSYNC_HOME
from ..container import AppContainer, build_container
from ..errors import ConfigError, StorageFailure
from ..models import SyncOutcome

logger = logging.getLogger("usersync.cli")

console = Console()

LOG_DIR = "logs"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def configure_logging(home: Path) -> None:
    """Attach a file handler writing <home>/logs/usersync.log.

    Safe to call repeatedly; a handler for the same file is only
    added once.
    """
    log_dir = home / LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "usersync.log"

    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_file:
            return

    handler = logging.FileHandler(log_file)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO)


def open_container(home: str) -> AppContainer:
    """Build the container for a home directory, or exit with an error."""
    home_path = Path(home).expanduser()
    home_path.mkdir(parents=True, exist_ok=True)
    configure_logging(home_path)

    try:
        return build_container(home_path)
    except (ConfigError, StorageFailure) as exc:
        console.print(f"[bold red]Cannot open replica:[/] {exc}")
        sys.exit(1)


@contextmanager
def replica_reads() -> Iterator[None]:
    """Exit 1 with a console message if reading the replica fails."""
    try:
        yield
    except StorageFailure as exc:
        logger.error("Replica read failed: %s", exc)
        console.print(f"[bold red]Cannot read replica:[/] {exc}")
        sys.exit(1)


def outcome_line(label: str, outcome: SyncOutcome) -> str:
    """Rich markup summary for a sync outcome."""
    if outcome.ok:
        return f"  [green]{label}[/] {outcome.message}"
    cause = f" [dim]({outcome.cause})[/]" if outcome.cause else ""
    return f"  [bold red]{label}[/] {outcome.message}{cause}"


def print_outcomes(*results: tuple[str, SyncOutcome]) -> None:
    """Print outcomes and exit 1 if any of them is an Error."""
    console.print()
    for label, outcome in results:
        console.print(outcome_line(label, outcome))
    console.print()

    if not all(outcome.ok for _, outcome in results):
        sys.exit(1)


__all__ = [
    "USERSYNC_HOME",
    "configure_logging",
    "console",
    "logger",
    "open_container",
    "outcome_line",
    "print_outcomes",
    "replica_reads",
]
