"""Pluggy hook specifications for listsync.

The display layer and telemetry reporters are plugins: the core never
waits on them and their failures never abort a drag transition.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from listsync.domain.items import Item

hookspec = pluggy.HookspecMarker("listsync")
hookimpl = pluggy.HookimplMarker("listsync")


class ListsyncHookSpec:
    """Hook specifications for the listsync plugin system."""

    @hookspec
    def report_event(self, event_name: str) -> None:
        """Fire-and-forget telemetry event (``addItemToQueue``, ``reorderItems``)."""

    @hookspec
    def post_snapshot(
        self,
        lists: dict[str, list[Item]],
        active_item_id: str | None,
        active_list_id: str | None,
    ) -> None:
        """Called after the local snapshot changed or a drag session ended."""

    @hookspec
    def post_command(self, command: dict[str, Any]) -> None:
        """Called after the store applied a command."""
