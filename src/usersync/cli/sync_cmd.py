"""Sync commands: push, pull, run, retry-deletes, status, watch."""

from __future__ import annotations

import click
from rich.panel import Panel

from ..models import SyncOutcome
from ._common import (
    USERSYNC_HOME,
    console,
    open_container,
    outcome_line,
    print_outcomes,
    replica_reads,
)


def register_sync_commands(main: click.Group) -> None:
    """Register the sync command group."""

    @main.group()
    def sync():
        """Reconcile the local replica with the server.

        push uploads queued creations, edits and deletions.
        pull downloads the server's full state (server wins).
        """

    @sync.command("push")
    @click.option("--home", default=USERSYNC_HOME, type=click.Path(), help="usersync home directory.")
    def sync_push(home: str):
        """Upload pending local changes."""
        container = open_container(home)
        console.print(f"\n  Pushing to [cyan]{container.remote.name}[/]...")
        print_outcomes(("push", container.engine.push()))

    @sync.command("pull")
    @click.option("--home", default=USERSYNC_HOME, type=click.Path(), help="usersync home directory.")
    def sync_pull(home: str):
        """Download the server's users into the local replica."""
        container = open_container(home)
        console.print(f"\n  Pulling from [cyan]{container.remote.name}[/]...")
        print_outcomes(("pull", container.engine.pull()))

    @sync.command("run")
    @click.option("--home", default=USERSYNC_HOME, type=click.Path(), help="usersync home directory.")
    def sync_run(home: str):
        """Push, then pull."""
        container = open_container(home)
        pushed, pulled = container.repository.sync()
        print_outcomes(("push", pushed), ("pull", pulled))

    @sync.command("retry-deletes")
    @click.option("--home", default=USERSYNC_HOME, type=click.Path(), help="usersync home directory.")
    def sync_retry_deletes(home: str):
        """Retry remote deletes that failed during an earlier push."""
        container = open_container(home)
        print_outcomes(("retry", container.engine.retry_failed_deletes()))

    @sync.command("status")
    @click.option("--home", default=USERSYNC_HOME, type=click.Path(), help="usersync home directory.")
    def sync_status(home: str):
        """Show what is waiting to be pushed."""
        container = open_container(home)
        with replica_reads():
            counts = container.repository.pending_counts()
            active = len(container.repository.active_users())

        console.print()
        console.print(
            Panel(
                f"Remote: [cyan]{container.remote.name}[/]\n"
                f"Replica: [cyan]{container.config.database_path(container.home)}[/]\n"
                f"Active users: [bold]{active}[/]\n"
                f"Pending upserts: [bold]{counts['upserts']}[/]\n"
                f"Pending deletes: [bold]{counts['deletes']}[/]\n"
                f"Failed remote deletes: "
                f"{counts['failed_deletes'] or '[dim]none[/]'}",
                title="usersync",
                border_style="cyan",
            )
        )
        console.print()

    @sync.command("watch")
    @click.option("--home", default=USERSYNC_HOME, type=click.Path(), help="usersync home directory.")
    @click.option("--interval", default=None, type=click.IntRange(min=1), help="Seconds between syncs.")
    def sync_watch(home: str, interval):
        """Sync periodically until interrupted (Ctrl-C)."""
        container = open_container(home)

        def report(kind: str, outcome: SyncOutcome) -> None:
            console.print(outcome_line(kind, outcome))

        trigger = container.build_trigger(interval=interval, on_result=report)
        console.print(
            f"\n  Watching [cyan]{container.remote.name}[/] "
            f"every {trigger.interval}s. Ctrl-C to stop.\n"
        )
        trigger.start()
        try:
            while not trigger.wait(timeout=1):
                pass
        except KeyboardInterrupt:
            container.stop_event.set()
        finally:
            trigger.stop()
        console.print(f"\n  [dim]{trigger.cycles_completed} cycle(s) completed.[/]\n")
