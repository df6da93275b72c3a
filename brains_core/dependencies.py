"""Dependency providers for the HTTP layer.

Runtime components are built once by the host and stored on `app.state`;
routes reach them through these functions so tests can swap them out.
"""

from fastapi import HTTPException, Request

from brains_core.commands import CommandRegistry
from brains_core.plugins.manager import PluginManager


def get_plugin_manager(request: Request) -> PluginManager:
    """Get the plugin manager attached to the application."""
    manager = getattr(request.app.state, "plugin_manager", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="Plugin runtime is not configured")
    return manager


def get_command_registry(request: Request) -> CommandRegistry:
    """Get the command registry of the application's plugin manager."""
    return get_plugin_manager(request).command_registry
