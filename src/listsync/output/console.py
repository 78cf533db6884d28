"""Rich Console factory and theme for listsync output.

Consoles render into a StringIO buffer so renderers keep a
``-> str`` contract. In non-TTY environments (tests, pipes) Rich drops
color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

LISTSYNC_THEME = Theme(
    {
        "ls.ok": "bold green",
        "ls.error": "bold red",
        "ls.warning": "bold yellow",
        "ls.op": "bold cyan",
        "ls.key": "dim",
        "ls.id": "bold blue",
        "ls.list": "bold magenta",
        "ls.title": "bold",
        "ls.flag": "green",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=LISTSYNC_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
