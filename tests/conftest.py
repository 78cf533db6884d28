"""Shared pytest fixtures for listsync tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pluggy
import pytest
from click.testing import CliRunner

from listsync.config.settings import ListsyncSettings
from listsync.domain.items import Item, ListCollection
from listsync.infrastructure.channel import RecordingChannel
from listsync.infrastructure.workspace import Workspace
from listsync.plugins.manager import PluginManager
from listsync.services.telemetry import disable_telemetry

hookimpl = pluggy.HookimplMarker("listsync")


class RecordingPlugin:
    """Display + telemetry plugin that records every hook call."""

    def __init__(self) -> None:
        self.events: list[str] = []
        self.snapshots: list[dict[str, Any]] = []
        self.commands: list[dict[str, Any]] = []

    @hookimpl
    def report_event(self, event_name: str) -> None:
        self.events.append(event_name)

    @hookimpl
    def post_snapshot(
        self,
        lists: dict[str, list[Item]],
        active_item_id: str | None,
        active_list_id: str | None,
    ) -> None:
        self.snapshots.append(
            {
                "lists": {k: [i.id for i in v] for k, v in lists.items()},
                "active_item_id": active_item_id,
                "active_list_id": active_list_id,
            }
        )

    @hookimpl
    def post_command(self, command: dict[str, Any]) -> None:
        self.commands.append(command)


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ListsyncSettings:
    """Default settings rooted at a temp dir, synchronous dispatch."""
    monkeypatch.delenv("LISTSYNC_CONFIG", raising=False)
    return ListsyncSettings.from_cli(workspace_root=tmp_path, sync=True)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def recorder() -> RecordingPlugin:
    return RecordingPlugin()


@pytest.fixture
def workspace(
    settings: ListsyncSettings,
    channel: RecordingChannel,
    recorder: RecordingPlugin,
) -> Generator[Workspace]:
    """Workspace recording commands, with a synchronous recording event bus."""
    ws = Workspace(settings, channel=channel, db_path=":memory:")
    pm = PluginManager()
    pm.register_plugin(recorder, name="recorder")
    ws.init_event_bus(plugin_manager=pm, sync=True, discover=False)
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def store_workspace(settings: ListsyncSettings, recorder: RecordingPlugin) -> Generator[Workspace]:
    """Workspace delivering commands to a real SQLite store under tmp_path."""
    ws = Workspace(settings)
    pm = PluginManager()
    pm.register_plugin(recorder, name="recorder")
    ws.init_event_bus(plugin_manager=pm, sync=True, discover=False)
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def make_lists() -> Callable[..., ListCollection]:
    """Build a ListCollection from ``list_id=["a1", "a2"]`` style kwargs.

    Item fields can be set per id through ``items={"a1": {"topic_id": ...}}``.
    """

    def _make(
        items: dict[str, dict[str, Any]] | None = None,
        **lists: list[str],
    ) -> ListCollection:
        fields = items or {}
        return {
            list_id: [Item(id=item_id, **fields.get(item_id, {})) for item_id in ids]
            for list_id, ids in lists.items()
        }

    return _make


@pytest.fixture
def _isolated_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run CLI commands inside a temp workspace root."""
    monkeypatch.delenv("LISTSYNC_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _telemetry_off() -> Generator[None]:
    """``-v`` CLI runs enable span collection; never leak it across tests."""
    yield
    disable_telemetry()


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """CLI invocations reconfigure the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("listsync").setLevel(logging.NOTSET)
