"""Plugin discovery and loading.

Discovery: setuptools entry points (pip-installed packages) via pluggy,
plus direct registration of plugin instances.
"""

from __future__ import annotations

import logging

import pluggy

from performkit.plugins.hookspecs import PerformkitHookSpec

PROJECT_NAME = "performkit"
DEFAULT_ENTRY_POINT_GROUP = "performkit.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(PerformkitHookSpec)

    def discover_and_load(self, *, group: str = DEFAULT_ENTRY_POINT_GROUP) -> list[str]:
        """Load plugins advertised under the *group* entry point.

        Returns a list of registered plugin names.
        """
        count = self._pm.load_setuptools_entrypoints(group)
        logger.debug("Loaded %d entry-point plugin(s) from %s", count, group)
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]
