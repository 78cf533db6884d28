"""PluginManager — pluggy registry for display and telemetry plugins.

Plugins come from two places: the ``listsync.plugins`` entry-point group
(pip-installed adapters) and direct registration by the host, e.g. a UI
adapter handed to the workspace at startup.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from listsync.plugins.hookspecs import ListsyncHookSpec

PROJECT_NAME = "listsync"
ENTRY_POINT_GROUP = "listsync.plugins"

# Attribute HookimplMarker(PROJECT_NAME) sets on decorated methods
_IMPL_ATTR = f"{PROJECT_NAME}_impl"

logger = logging.getLogger(__name__)


class PluginManager:
    """Hook registry shared by the event bus and the host."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ListsyncHookSpec)
        self._discovered = False

    @property
    def is_loaded(self) -> bool:
        """True once the entry-point group has been scanned."""
        return self._discovered

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def discover_and_load(self) -> list[str]:
        """Register every plugin advertised under ``listsync.plugins``.

        Returns the names of all registered plugins afterwards.
        """
        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        if count:
            logger.debug("Loaded %d entry-point plugin(s)", count)
        self._normalize_plugin_instances()
        self._discovered = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register *plugin* under *name* (default: its class name)."""
        plugin_name = name if name is not None else type(plugin).__name__
        self._pm.register(plugin, name=plugin_name)
        logger.debug("Plugin %s registered", plugin_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def get_plugins(self) -> list[object]:
        return [*self._pm.get_plugins()]

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(plugin) or str(plugin) for plugin in self._pm.get_plugins()]

    def _normalize_plugin_instances(self) -> None:
        """Swap entry points that expose a plugin *class* for an instance.

        Hooks called on the class itself would receive no ``self``.
        """
        plugin_classes = [
            plugin
            for plugin in self._pm.get_plugins()
            if inspect.isclass(plugin) and self._has_hook_impls(plugin)
        ]
        for plugin_cls in plugin_classes:
            name = self._pm.get_name(plugin_cls) or plugin_cls.__name__
            self._pm.unregister(plugin_cls)
            try:
                instance = plugin_cls()
            except Exception:
                logger.warning("Entry-point plugin %s could not be created", name, exc_info=True)
                continue
            self._pm.register(instance, name=name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Whether *cls* defines at least one public ``@hookimpl`` method."""
        return any(
            callable(member) and getattr(member, _IMPL_ATTR, None) is not None
            for attr, member in inspect.getmembers(cls)
            if not attr.startswith("_")
        )
