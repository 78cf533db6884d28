"""Workspace — the single dependency injected into every service.

Owns the settings, the reference store (created lazily), the outbound
command channel and the plugin event bus. Tests inject a
:class:`~listsync.infrastructure.channel.RecordingChannel` and a
synchronous event bus instead of a real store.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from listsync.infrastructure.channel import CommandChannel, DispatchChannel
from listsync.infrastructure.database.engine import init_database
from listsync.infrastructure.store import SqlStore

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from listsync.config.settings import ListsyncSettings
    from listsync.domain.positions import StoreCommand
    from listsync.plugins.event_bus import EventBus
    from listsync.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class Workspace:
    """Settings plus the collaborators a drag session talks to.

    Parameters:
        settings: Resolved settings.
        channel: Outbound command channel. Defaults to a
            :class:`DispatchChannel` delivering to the reference store.
        db_path: Override the store location (``":memory:"`` for tests).
    """

    def __init__(
        self,
        settings: ListsyncSettings,
        *,
        channel: CommandChannel | None = None,
        db_path: Path | str | None = None,
    ) -> None:
        self._settings = settings
        self._channel = channel
        self._db_path = db_path if db_path is not None else settings.store_path
        self._engine: Engine | None = None
        self._store: SqlStore | None = None
        self._event_bus: EventBus | None = None

    @property
    def settings(self) -> ListsyncSettings:
        return self._settings

    @property
    def root(self) -> Path:
        return self._settings.workspace_root

    @property
    def store(self) -> SqlStore:
        """The reference store (database created on first access)."""
        if self._store is None:
            self._engine = init_database(self._db_path)
            lists_cfg = self._settings.lists
            self._store = SqlStore(
                self._engine,
                topic_marker=lists_cfg.topic_marker,
                domain_separator=lists_cfg.domain_separator,
            )
        return self._store

    @property
    def channel(self) -> CommandChannel:
        """Outbound command channel (delivers to :attr:`store` by default)."""
        if self._channel is None:
            self._channel = DispatchChannel(
                self.store.apply,
                sync=self._settings.dispatch_sync,
                on_applied=self._command_applied,
            )
        return self._channel

    @property
    def event_bus(self) -> EventBus | None:
        """The event bus, or None if not initialized."""
        return self._event_bus

    def init_event_bus(
        self,
        *,
        plugin_manager: PluginManager | None = None,
        sync: bool | None = None,
        discover: bool = True,
    ) -> EventBus:
        """Create the event bus for display and telemetry plugins.

        Entry-point plugins are loaded unless *discover* is False.
        """
        from listsync.plugins.event_bus import EventBus
        from listsync.plugins.manager import PluginManager

        pm = plugin_manager or PluginManager()
        if discover and not pm.is_loaded:
            pm.discover_and_load()

        self._event_bus = EventBus(
            pm,
            sync=self._settings.dispatch_sync if sync is None else sync,
            max_retries=self._settings.dispatch.max_retries,
        )
        return self._event_bus

    def drain(self) -> None:
        """Wait for outstanding commands and events."""
        drain = getattr(self._channel, "drain", None)
        if drain is not None:
            drain()
        if self._event_bus is not None:
            self._event_bus.drain()

    def close(self) -> None:
        """Flush and release the channel, event bus, and engine."""
        shutdown = getattr(self._channel, "shutdown", None)
        if shutdown is not None:
            shutdown()
        if self._event_bus is not None:
            self._event_bus.shutdown()
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._store = None

    def _command_applied(self, command: StoreCommand, _result: Any) -> None:
        if self._event_bus is not None:
            self._event_bus.dispatch("post_command", {"command": command.model_dump(mode="json")})
