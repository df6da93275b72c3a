"""PluginContext - the object passed to each plugin's register() function."""

import logging
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel

from brains_core.commands import Command, CommandRegistry, Resource, Tool
from brains_core.messaging import MessageBus, MessageHandler, MessageResponse


class PluginContext:
    """Context provided to plugins during registration.

    Plugins use this to subscribe to channels, send messages, register
    commands and tools, and reach collaborator services. Subscriptions made
    through the context are released when the plugin shuts down.
    """

    def __init__(
        self,
        plugin_id: str,
        config: dict,
        message_bus: MessageBus,
        command_registry: CommandRegistry,
        services: Optional[Dict[str, Any]] = None,
    ):
        self.plugin_id = plugin_id
        self.config = config
        self.message_bus = message_bus
        self.command_registry = command_registry
        self.services = dict(services or {})
        self._disposers: List[Callable[[], None]] = []
        self._logger = logging.getLogger(f"plugin.{plugin_id}")

    def subscribe(self, channel: str, handler: MessageHandler) -> Callable[[], None]:
        """Subscribe to a channel on behalf of this plugin.

        Returns:
            Disposer that removes the subscription early
        """
        unsubscribe = self.message_bus.subscribe(channel, handler)
        self._disposers.append(unsubscribe)
        self._logger.debug(f"Subscribed to channel '{channel}'")
        return unsubscribe

    def define_channel(self, channel: str, schema: Type[BaseModel]) -> Callable[[], None]:
        """Declare a channel's payload model; it is dropped when the plugin is released."""
        undefine = self.message_bus.define_channel(channel, schema)
        self._disposers.append(undefine)
        return undefine

    async def send(
        self,
        channel: str,
        payload: Any = None,
        target: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        broadcast: bool = False,
    ) -> MessageResponse:
        """Send a message with this plugin as the source."""
        return await self.message_bus.send(
            channel,
            payload,
            source=self.plugin_id,
            target=target,
            metadata=metadata,
            broadcast=broadcast,
        )

    def register_command(self, command: Command) -> bool:
        registered = self.command_registry.register_command(self.plugin_id, command)
        if registered:
            self._logger.info(f"Registered command: {command.name}")
        return registered

    def register_tool(self, tool: Tool) -> bool:
        registered = self.command_registry.register_tool(self.plugin_id, tool)
        if registered:
            self._logger.info(f"Registered tool: {tool.name}")
        return registered

    def register_resource(self, resource: Resource) -> bool:
        registered = self.command_registry.register_resource(self.plugin_id, resource)
        if registered:
            self._logger.info(f"Registered resource: {resource.uri}")
        return registered

    def get_service(self, name: str) -> Any:
        """Get a collaborator service provided by the host.

        Raises:
            KeyError: If the host did not provide the service
        """
        if name not in self.services:
            raise KeyError(f"Service '{name}' is not available to plugin '{self.plugin_id}'")
        return self.services[name]

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """Get a logger for this plugin.

        Args:
            name: Optional sub-logger name (appended to plugin.{plugin_id})
        """
        if name:
            return logging.getLogger(f"plugin.{self.plugin_id}.{name}")
        return self._logger

    def release(self) -> None:
        """Drop everything this plugin registered through the context."""
        for dispose in self._disposers:
            dispose()
        self._disposers.clear()
        self.command_registry.unregister_plugin(self.plugin_id)
