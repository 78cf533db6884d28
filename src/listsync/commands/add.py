"""Command: add an item to the store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from listsync.commands._base import ListsyncCommand

if TYPE_CHECKING:
    from listsync.commands._context import AppContext


@click.command(
    cls=ListsyncCommand,
    examples="""\
  listsync add "Attention is all you need" --url https://arxiv.org/abs/1706.03762
  listsync add "Weekend read" --url https://example.com/post --queued
  listsync add "Match report" --url https://news.example.com/a --topic sports_""",
)
@click.argument("title")
@click.option("--url", default="", help="Item URL (its domain is the domain list key).")
@click.option("--topic", "topic_id", default=None, help="Topic key, e.g. 'sports_'.")
@click.option("--queued", is_flag=True, help="Add to the reading queue.")
@click.option("--favorite", is_flag=True, help="Mark as favorite.")
@click.pass_obj
def add(
    app: AppContext,
    title: str,
    url: str,
    topic_id: str | None,
    queued: bool,
    favorite: bool,
) -> None:
    """Add an item to the store."""
    from listsync.services.board import BoardService

    app.emit(
        BoardService(app.workspace).add_item(
            title, url=url, topic_id=topic_id, queued=queued, favorite=favorite
        )
    )
