"""Command: show lists as the store orders them."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from listsync.commands._base import ListsyncCommand

if TYPE_CHECKING:
    from listsync.commands._context import AppContext


@click.command(
    cls=ListsyncCommand,
    examples="""\
  listsync show
  listsync show queue favorites
  listsync --json show sports_ example.com""",
)
@click.argument("list_ids", nargs=-1)
@click.pass_obj
def show(app: AppContext, list_ids: tuple[str, ...]) -> None:
    """Show LIST_IDS (default: queue, list)."""
    from listsync.services.board import DEFAULT_LISTS, BoardService

    app.emit(BoardService(app.workspace).show(list_ids or DEFAULT_LISTS))
