"""Plugin registry - the table of every plugin known to the manager."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, TYPE_CHECKING

from brains_core.plugins.hooks import LifecycleHooks
from brains_core.plugins.manifest import Plugin

if TYPE_CHECKING:
    from brains_core.plugins.context import PluginContext

logger = logging.getLogger(__name__)


class PluginState(str, Enum):
    """Plugin lifecycle states."""

    REGISTERED = "registered"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"
    READY = "ready"
    SHUTTING_DOWN = "shutting_down"
    SHUTDOWN = "shutdown"


# States in which a plugin's on_initialize has completed and it has not been shut down
ACTIVE_STATES = (PluginState.INITIALIZED, PluginState.READY)


@dataclass
class PluginInstance:
    """Runtime bookkeeping for a registered plugin."""

    plugin: Plugin
    state: PluginState = PluginState.REGISTERED
    enabled: bool = True
    hooks: Optional[LifecycleHooks] = field(default=None, repr=False)
    context: Optional[PluginContext] = field(default=None, repr=False)
    error: Optional[Exception] = None

    @property
    def id(self) -> str:
        return self.plugin.id

    @property
    def is_active(self) -> bool:
        return self.state in ACTIVE_STATES

    def to_dict(self) -> dict:
        """Serialize plugin instance to dict for API responses."""
        return {
            "id": self.plugin.id,
            "version": self.plugin.version,
            "description": self.plugin.description,
            "package_name": self.plugin.package_name,
            "dependencies": list(self.plugin.dependencies),
            "state": self.state.value,
            "enabled": self.enabled,
            "error": str(self.error) if self.error else None,
        }


class PluginRegistry:
    """Plugin table, kept in registration order."""

    def __init__(self):
        self._plugins: Dict[str, PluginInstance] = {}

    def register(self, plugin: Plugin) -> Optional[PluginInstance]:
        """Add a plugin to the table.

        Returns:
            The new PluginInstance, or None if the id is already taken
        """
        if plugin.id in self._plugins:
            existing = self._plugins[plugin.id].plugin
            logger.warning(
                f"Plugin '{plugin.id}' already registered with version {existing.version}, ignoring"
            )
            return None
        instance = PluginInstance(plugin=plugin)
        self._plugins[plugin.id] = instance
        logger.info(f"Registered plugin: {plugin.id} ({plugin.version})")
        return instance

    def get(self, plugin_id: str) -> Optional[PluginInstance]:
        """Get a plugin by ID."""
        return self._plugins.get(plugin_id)

    def get_all(self) -> list[PluginInstance]:
        """Get all registered plugins in registration order."""
        return list(self._plugins.values())

    def get_by_state(self, *states: PluginState) -> list[PluginInstance]:
        return [p for p in self._plugins.values() if p.state in states]

    def get_failed(self) -> list[PluginInstance]:
        return [p for p in self._plugins.values() if p.error is not None]

    def has(self, plugin_id: str) -> bool:
        """Check if a plugin is registered."""
        return plugin_id in self._plugins

    def ids(self) -> list[str]:
        return list(self._plugins)

    def count(self) -> int:
        """Get total number of registered plugins."""
        return len(self._plugins)
