"""
usersync CLI -- manage the local user replica and sync it.

Each command group lives in its own module and is attached to the
main Click group through a register function.

Entry point: usersync.cli:main
"""

from __future__ import annotations

import logging

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="usersync")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool):
    """usersync -- offline-first user replica.

    Edit users locally, push when the network is back, pull to
    catch up with the server.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


# ---------------------------------------------------------------------------
# Register all command groups from modular files
# ---------------------------------------------------------------------------

from .users_cmd import register_users_commands
from .sync_cmd import register_sync_commands

register_users_commands(main)
register_sync_commands(main)
