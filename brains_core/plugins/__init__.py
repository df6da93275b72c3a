"""Plugin runtime: registration, dependency ordering and lifecycle.

Imports are lazy so lightweight pieces like RuntimeConfigService or
PluginDiscovery can be used without pulling in the whole runtime.
"""

__all__ = [
    "Plugin",
    "PluginManifest",
    "LifecycleHooks",
    "PluginContext",
    "PluginRegistry",
    "PluginInstance",
    "PluginState",
    "DependencyGraph",
    "PluginDiscovery",
    "PluginLifecycle",
    "PluginManager",
    "PluginEvent",
    "RuntimeConfigService",
]


def __getattr__(name):
    if name in ("Plugin", "PluginManifest"):
        from brains_core.plugins import manifest
        return getattr(manifest, name)
    if name == "LifecycleHooks":
        from brains_core.plugins.hooks import LifecycleHooks
        return LifecycleHooks
    if name == "PluginContext":
        from brains_core.plugins.context import PluginContext
        return PluginContext
    if name in ("PluginRegistry", "PluginInstance", "PluginState"):
        from brains_core.plugins import registry
        return getattr(registry, name)
    if name == "DependencyGraph":
        from brains_core.plugins.graph import DependencyGraph
        return DependencyGraph
    if name == "PluginDiscovery":
        from brains_core.plugins.discovery import PluginDiscovery
        return PluginDiscovery
    if name == "PluginLifecycle":
        from brains_core.plugins.lifecycle import PluginLifecycle
        return PluginLifecycle
    if name in ("PluginManager", "PluginEvent"):
        from brains_core.plugins import manager
        return getattr(manager, name)
    if name == "RuntimeConfigService":
        from brains_core.plugins.config import RuntimeConfigService
        return RuntimeConfigService
    raise AttributeError(f"module 'brains_core.plugins' has no attribute {name!r}")
