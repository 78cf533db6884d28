"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from listsync.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from listsync.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    if verbose:
        _render_meta(console, result)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: item ids per list, or a status line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    lists = result.data.get("lists")
    if isinstance(lists, dict):
        lines = []
        for list_id, items in lists.items():
            ids = [item["id"] if isinstance(item, dict) else str(item) for item in items]
            lines.append(f"{list_id}: {' '.join(ids)}".rstrip())
        return "\n".join(lines)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="ls.ok"), Text(f"  {result.op}", style="ls.op"))


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="ls.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="ls.id")
    elif key == "title":
        v = Text(str(value), style="ls.title")
    else:
        v = Text(str(value))
    console.print(k + v)


def _render_meta(console: Console, result: ServiceResult) -> None:
    telemetry = (result.meta or {}).get("telemetry")
    if not telemetry:
        return
    console.print(Text("  telemetry:", style="dim"))
    _render_span(console, telemetry, indent=4)


def _render_span(console: Console, span: dict[str, Any], indent: int) -> None:
    line = f"{' ' * indent}{span.get('duration_ms', 0.0):>8.3f}ms  {span.get('name', '?')}"
    annotations = span.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line, style="dim")
    for child in span.get("children", []):
        _render_span(console, child, indent + 4)


def _warnings(console: Console, result: ServiceResult) -> None:
    for warning in result.warnings:
        console.print(Text(f"  ! {warning}", style="ls.warning"))


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="ls.error"), Text(f"  {result.op}", style="ls.op"), Text(" — "), msg
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="ls.key"))
        for key, value in err.detail.items():
            _field(console, f"  {key}", value)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


def _render_lists(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for list_id, items in result.data.get("lists", {}).items():
        console.print(Text(f"\n{list_id}", style="ls.list"), Text(f" ({len(items)})", style="dim"))
        if not items:
            console.print(Text("  (empty)", style="dim"))
            continue
        table = Table(show_header=True, pad_edge=False, expand=False)
        table.add_column("#", justify="right", style="dim")
        table.add_column("ID", style="ls.id", no_wrap=True)
        table.add_column("Title", style="ls.title")
        table.add_column("Topic")
        table.add_column("Flags", style="ls.flag")
        if verbose:
            table.add_column("URL", style="dim")
        for position, item in enumerate(items):
            flags = " ".join(
                flag
                for flag, key in (("queued", "is_queued"), ("fav", "is_favorite"))
                if item.get(key)
            )
            row = [
                str(position),
                str(item.get("id", "")),
                str(item.get("title", "")),
                str(item.get("topic_id") or ""),
                flags,
            ]
            if verbose:
                row.append(str(item.get("url", "")))
            table.add_row(*row)
        console.print(table)


def _render_replay(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    data = result.data
    for key in ("events", "failed", "commands_sent", "commands_delivered"):
        _field(console, key, data.get(key, 0))

    if verbose:
        console.print(Text("  transitions:", style="ls.key"))
        for transition in data.get("transitions", []):
            ok = transition["ok"]
            status = Text("ok " if ok else "err", style="ls.ok" if ok else "ls.error")
            summary = transition["data"].get("reason") or transition["data"].get("denied") or ""
            console.print(Text("    "), status, Text(f" {transition['event']:<6} {summary}"))

    console.print(Text("  lists:", style="ls.key"))
    for list_id, ids in data.get("lists", {}).items():
        line = Text(f"    {list_id}: ", style="ls.list") + Text(" ".join(ids), style="ls.id")
        console.print(line)
    _warnings(console, result)


_OP_RENDERERS: dict[str, Callable[..., None]] = {
    "show_lists": _render_lists,
    "replay": _render_replay,
}
