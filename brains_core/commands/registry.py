"""Command registry - stores capabilities contributed by plugins and gates access."""

import inspect
import logging
from typing import Any, Dict, List, Optional, Set, TypeVar

from brains_core.commands.models import Capability, Command, Resource, Tool
from brains_core.errors import CommandNotFoundError, PermissionDeniedError
from brains_core.permissions import PermissionLevel, PermissionService, has_permission

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=Capability)


class CommandRegistry:
    """Central registry for plugin commands, tools and resources.

    Capabilities are keyed by `plugin_id:name` (resources by `plugin_id:uri`),
    so two plugins may contribute the same display name. Lookups resolve the
    caller's level through the PermissionService and treat an unset visibility
    as anchor-only.
    """

    def __init__(self, permission_service: Optional[PermissionService] = None):
        self.permission_service = permission_service or PermissionService()
        self._commands: Dict[str, Command] = {}
        self._tools: Dict[str, Tool] = {}
        self._resources: Dict[str, Resource] = {}
        self._disabled_plugins: Set[str] = set()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_command(self, plugin_id: str, command: Command) -> bool:
        """Register a command for a plugin.

        Returns:
            False if `plugin_id:name` was already registered (the existing entry is kept)
        """
        return self._store(self._commands, f"{plugin_id}:{command.name}", plugin_id, command)

    def register_tool(self, plugin_id: str, tool: Tool) -> bool:
        """Register a tool for a plugin. Same keying rules as commands."""
        return self._store(self._tools, f"{plugin_id}:{tool.name}", plugin_id, tool)

    def register_resource(self, plugin_id: str, resource: Resource) -> bool:
        """Register a resource for a plugin, keyed by its URI."""
        return self._store(self._resources, f"{plugin_id}:{resource.uri}", plugin_id, resource)

    def _store(self, table: Dict[str, C], key: str, plugin_id: str, capability: C) -> bool:
        if key in table:
            logger.debug(f"Capability '{key}' already registered, ignoring")
            return False
        table[key] = capability.model_copy(update={"plugin_id": plugin_id})
        logger.debug(f"Registered {type(capability).__name__.lower()}: {key}")
        return True

    def unregister_plugin(self, plugin_id: str) -> int:
        """Remove every capability contributed by a plugin.

        Returns:
            Number of capabilities removed
        """
        removed = 0
        for table in (self._commands, self._tools, self._resources):
            for key in [k for k, v in table.items() if v.plugin_id == plugin_id]:
                del table[key]
                removed += 1
        if removed:
            logger.info(f"Unregistered {removed} capability(ies) of plugin '{plugin_id}'")
        return removed

    def disable_plugin(self, plugin_id: str) -> None:
        """Hide a plugin's capabilities from every lookup."""
        self._disabled_plugins.add(plugin_id)

    def enable_plugin(self, plugin_id: str) -> None:
        """Make a previously disabled plugin's capabilities visible again."""
        self._disabled_plugins.discard(plugin_id)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve_level(self, interface_type: str, user_id: str) -> PermissionLevel:
        return self.permission_service.determine_level(interface_type, user_id)

    def _active(self, table: Dict[str, C]) -> List[C]:
        return [c for c in table.values() if c.plugin_id not in self._disabled_plugins]

    def _visible(self, table: Dict[str, C], level: PermissionLevel) -> List[C]:
        return [c for c in self._active(table) if has_permission(level, c.effective_visibility)]

    def find_command(self, name: str, interface_type: str, user_id: str) -> Optional[Command]:
        """Find the first command with this name the caller may use."""
        level = self.resolve_level(interface_type, user_id)
        return next((c for c in self._visible(self._commands, level) if c.name == name), None)

    def list_commands(self, interface_type: str, user_id: str) -> List[Command]:
        """List every command visible to the caller, in registration order."""
        return self._visible(self._commands, self.resolve_level(interface_type, user_id))

    def find_tool(self, name: str, interface_type: str, user_id: str) -> Optional[Tool]:
        level = self.resolve_level(interface_type, user_id)
        return next((t for t in self._visible(self._tools, level) if t.name == name), None)

    def list_tools(self, interface_type: str, user_id: str) -> List[Tool]:
        return self._visible(self._tools, self.resolve_level(interface_type, user_id))

    def list_resources(self, interface_type: str, user_id: str) -> List[Resource]:
        return self._visible(self._resources, self.resolve_level(interface_type, user_id))

    def get_all_commands(self) -> List[Command]:
        return list(self._commands.values())

    def get_all_tools(self) -> List[Tool]:
        return list(self._tools.values())

    def get_commands_from_plugin(self, plugin_id: str) -> List[Command]:
        return [c for c in self._commands.values() if c.plugin_id == plugin_id]

    def get_tools_from_plugin(self, plugin_id: str) -> List[Tool]:
        return [t for t in self._tools.values() if t.plugin_id == plugin_id]

    def get_stats(self) -> Dict[str, Any]:
        commands_by_plugin: Dict[str, int] = {}
        for command in self._commands.values():
            commands_by_plugin[command.plugin_id] = commands_by_plugin.get(command.plugin_id, 0) + 1
        return {
            "total_commands": len(self._commands),
            "commands_by_plugin": commands_by_plugin,
            "total_tools": len(self._tools),
            "total_resources": len(self._resources),
        }

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    async def execute_command(
        self, name: str, args: List[str], interface_type: str, user_id: str
    ) -> Any:
        """Run a command on behalf of a caller.

        Raises:
            CommandNotFoundError: No active command has this name
            PermissionDeniedError: The command exists but the caller may not use it
        """
        command = self._authorize(self._commands, name, interface_type, user_id)
        logger.info(f"Executing command '{name}' ({command.plugin_id}) for {interface_type}:{user_id}")
        return await _invoke(command, args)

    async def execute_tool(
        self, name: str, arguments: Dict[str, Any], interface_type: str, user_id: str
    ) -> Any:
        """Run a tool on behalf of a caller. Same errors as execute_command."""
        tool = self._authorize(self._tools, name, interface_type, user_id)
        logger.info(f"Executing tool '{name}' ({tool.plugin_id}) for {interface_type}:{user_id}")
        return await _invoke(tool, arguments)

    def _authorize(self, table: Dict[str, C], name: str, interface_type: str, user_id: str) -> C:
        candidates = [c for c in self._active(table) if c.name == name]
        if not candidates:
            raise CommandNotFoundError(name)

        level = self.resolve_level(interface_type, user_id)
        for capability in candidates:
            if has_permission(level, capability.effective_visibility):
                return capability

        logger.warning(f"Denied '{name}' to {interface_type}:{user_id} (level {level.value})")
        raise PermissionDeniedError(name, level.value, candidates[0].effective_visibility.value)


async def _invoke(capability: Capability, arguments: Any) -> Any:
    result = capability.handler(arguments)
    if inspect.isawaitable(result):
        result = await result
    return result
