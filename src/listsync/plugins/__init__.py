"""Extension layer — display, telemetry, and store observers via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

from listsync.plugins.event_bus import EventBus
from listsync.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
