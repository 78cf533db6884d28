"""Subcommand modules for listsync.

register_commands() uses deferred imports to keep ``listsync --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from listsync.commands.add import add
    from listsync.commands.replay import replay
    from listsync.commands.show import show

    cli.add_command(add)
    cli.add_command(show)
    cli.add_command(replay)
