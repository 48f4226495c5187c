"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus single-file plugins under ``.orgtree/plugins/``.
INVARIANT: Plugin failures are warnings, never errors.
"""

from orgtree.plugins.event_bus import EventBus
from orgtree.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
