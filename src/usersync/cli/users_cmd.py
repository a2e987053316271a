"""User commands: list, add, edit, delete (all local, no network)."""

from __future__ import annotations

import sys
from typing import Optional

import click
from rich.table import Table

from ..models import User
from ._common import USERSYNC_HOME, console, open_container, print_outcomes, replica_reads

_PROFILE_OPTIONS = [
    click.option("--first-name", default=None, help="First name."),
    click.option("--last-name", default=None, help="Last name."),
    click.option("--email", default=None, help="Email address."),
    click.option("--age", default=None, type=click.IntRange(min=0), help="Age in years."),
    click.option("--user-name", default=None, help="Login / handle."),
    click.option("--position-title", default=None, help="Job title."),
    click.option("--imagen", default=None, help="Profile image URL."),
]


def _profile_options(func):
    for option in reversed(_PROFILE_OPTIONS):
        func = option(func)
    return func


def _given(fields: dict[str, Optional[object]]) -> dict[str, object]:
    return {name: value for name, value in fields.items() if value is not None}


def _sync_flag(user: User) -> str:
    if user.is_provisional:
        return "[yellow]new[/]"
    if user.pending_sync:
        return "[yellow]modified[/]"
    return "[green]synced[/]"


def register_users_commands(main: click.Group) -> None:
    """Register the users command group."""

    @main.group()
    def users():
        """Local user replica -- edits are queued for the next push."""

    @users.command("list")
    @click.option("--home", default=USERSYNC_HOME, type=click.Path(), help="usersync home directory.")
    def users_list(home: str):
        """Show active users (soft-deleted users are hidden)."""
        container = open_container(home)
        with replica_reads():
            active = container.repository.active_users()

        if not active:
            console.print("\n  [dim]No users in the local replica.[/]\n")
            return

        table = Table(title=f"Users ({len(active)})", show_lines=False)
        table.add_column("ID", style="cyan", overflow="fold")
        table.add_column("Name", style="bold")
        table.add_column("Email")
        table.add_column("Age", justify="right")
        table.add_column("User")
        table.add_column("Position")
        table.add_column("Sync")

        for user in active:
            table.add_row(
                user.id,
                f"{user.first_name} {user.last_name}".strip(),
                user.email,
                str(user.age),
                user.user_name,
                user.position_title,
                _sync_flag(user),
            )

        console.print()
        console.print(table)
        console.print()

    @users.command("add")
    @click.option("--home", default=USERSYNC_HOME, type=click.Path(), help="usersync home directory.")
    @_profile_options
    def users_add(home: str, **fields):
        """Create a user locally. It gets a server id on the next push.

        Examples:

            usersync users add --first-name Ana --last-name García --email ana@example.com
        """
        if not fields.get("first_name"):
            raise click.UsageError("--first-name is required")

        container = open_container(home)
        outcome = container.repository.insert_user(User(id="", **_given(fields)))
        print_outcomes(("add", outcome))

    @users.command("edit")
    @click.argument("user_id")
    @click.option("--home", default=USERSYNC_HOME, type=click.Path(), help="usersync home directory.")
    @_profile_options
    def users_edit(user_id: str, home: str, **fields):
        """Edit a user locally; only the given fields change."""
        changes = _given(fields)
        if not changes:
            raise click.UsageError("Nothing to change")

        container = open_container(home)
        with replica_reads():
            user = container.repository.get(user_id)
        if user is None or user.pending_delete:
            console.print(f"\n  [bold red]No such user:[/] {user_id}\n")
            sys.exit(1)

        outcome = container.repository.update_user(user.model_copy(update=changes))
        print_outcomes(("edit", outcome))

    @users.command("delete")
    @click.argument("user_id")
    @click.option("--home", default=USERSYNC_HOME, type=click.Path(), help="usersync home directory.")
    def users_delete(user_id: str, home: str):
        """Mark a user for deletion; it is removed on the next push."""
        container = open_container(home)
        with replica_reads():
            user = container.repository.get(user_id)
        if user is None or user.pending_delete:
            console.print(f"\n  [bold red]No such user:[/] {user_id}\n")
            sys.exit(1)

        outcome = container.repository.delete_user(user)
        print_outcomes(("delete", outcome))
