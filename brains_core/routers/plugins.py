"""Plugin and capability introspection REST API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from brains_core.commands import CommandRegistry
from brains_core.dependencies import get_command_registry, get_plugin_manager
from brains_core.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["plugins"])


@router.get("/plugins")
async def list_plugins(manager: PluginManager = Depends(get_plugin_manager)):
    """List all registered plugins and their lifecycle state."""
    return {
        "plugins": manager.list_plugins(),
        "initialization_order": manager.initialization_order,
    }


@router.get("/plugins/{plugin_id}")
async def get_plugin(plugin_id: str, manager: PluginManager = Depends(get_plugin_manager)):
    """Get detailed information about a specific plugin."""
    info = manager.get_plugin_info(plugin_id)
    if not info:
        raise HTTPException(status_code=404, detail=f"Plugin '{plugin_id}' not found")
    return info


@router.post("/plugins/{plugin_id}/enable")
async def enable_plugin(plugin_id: str, manager: PluginManager = Depends(get_plugin_manager)):
    """Enable a plugin, making its commands and tools visible again."""
    if not manager.has_plugin(plugin_id):
        raise HTTPException(status_code=404, detail=f"Plugin '{plugin_id}' not found")
    changed = manager.enable_plugin(plugin_id)
    return {
        "message": f"Plugin '{plugin_id}' enabled" if changed else f"Plugin '{plugin_id}' was not disabled",
        "plugin": manager.get_plugin_info(plugin_id),
    }


@router.post("/plugins/{plugin_id}/disable")
async def disable_plugin(plugin_id: str, manager: PluginManager = Depends(get_plugin_manager)):
    """Disable a plugin. Its hooks keep running; its commands and tools are hidden."""
    if not manager.disable_plugin(plugin_id):
        raise HTTPException(status_code=404, detail=f"Plugin '{plugin_id}' not found")
    return {
        "message": f"Plugin '{plugin_id}' disabled",
        "plugin": manager.get_plugin_info(plugin_id),
    }


@router.get("/commands")
async def list_commands(
    interface_type: str = Query(..., description="Interface the caller uses, e.g. 'cli'"),
    user_id: str = Query(..., description="Caller id within that interface"),
    registry: CommandRegistry = Depends(get_command_registry),
):
    """List the commands a caller may see, like a help listing."""
    level = registry.resolve_level(interface_type, user_id)
    commands = registry.list_commands(interface_type, user_id)
    return {"level": level.value, "commands": [c.to_dict() for c in commands]}


@router.get("/tools")
async def list_tools(
    interface_type: str = Query(...),
    user_id: str = Query(...),
    registry: CommandRegistry = Depends(get_command_registry),
):
    """List the tools a caller may see."""
    level = registry.resolve_level(interface_type, user_id)
    tools = registry.list_tools(interface_type, user_id)
    return {"level": level.value, "tools": [t.to_dict() for t in tools]}
