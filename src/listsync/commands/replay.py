"""Command: replay recorded drag events against the store."""

from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

import click

from listsync.commands._base import ListsyncCommand

if TYPE_CHECKING:
    from listsync.commands._context import AppContext


@click.command(
    cls=ListsyncCommand,
    examples="""\
  listsync replay drag.jsonl
  listsync replay drag.jsonl --list queue --list sports_
  cat drag.jsonl | listsync --sync --json replay -

  Each line is one event:
    {"event": "start", "item": "itm_1a2b3c4d"}
    {"event": "over", "item": "itm_1a2b3c4d", "target": {"list": "queue"}}
    {"event": "end", "item": "itm_1a2b3c4d", "target": {"item": "itm_9f8e7d6c"}}""",
)
@click.argument("events_file", type=click.File("r", encoding="utf-8"))
@click.option(
    "--list",
    "list_ids",
    multiple=True,
    help="List to load into the snapshot (repeatable; default: queue, list).",
)
@click.pass_obj
def replay(app: AppContext, events_file: TextIO, list_ids: tuple[str, ...]) -> None:
    """Replay drag EVENTS_FILE (JSON lines, '-' for stdin) and show the result."""
    from listsync.services.board import DEFAULT_LISTS, BoardService, parse_events
    from listsync.services.result import ServiceResult

    try:
        events = parse_events(events_file)
    except ValueError as exc:
        app.emit(ServiceResult.failure("replay", "INVALID_EVENTS", str(exc)))
        return

    app.emit(BoardService(app.workspace).replay(events, list_ids or DEFAULT_LISTS))
