"""Exception taxonomy for the plugin runtime."""

from typing import Optional


class PluginError(Exception):
    """Base class for all plugin runtime errors."""


class InvalidPluginError(PluginError):
    """Raised when an object handed to the manager is not a valid plugin."""


class MissingDependencyError(PluginError):
    """A plugin declares a dependency that is not registered."""

    def __init__(self, plugin_id: str, dependency_id: str):
        self.plugin_id = plugin_id
        self.dependency_id = dependency_id
        super().__init__(
            f"Plugin '{plugin_id}' depends on '{dependency_id}', which is not registered"
        )


class DependencyCycleError(PluginError):
    """The dependency graph contains a cycle."""

    def __init__(self, plugin_id: str):
        self.plugin_id = plugin_id
        super().__init__(f"Circular dependency detected involving '{plugin_id}'")


class PluginInitializationError(PluginError):
    """A plugin's register() call or one of its startup hooks failed."""

    def __init__(self, plugin_id: str, hook: str, cause: BaseException):
        self.plugin_id = plugin_id
        self.hook = hook
        self.cause = cause
        reason = str(cause) or type(cause).__name__
        super().__init__(f"Plugin '{plugin_id}' failed in {hook}: {reason}")


class ChannelHandlerError(PluginError):
    """A message handler raised while processing a message."""

    def __init__(self, channel: str, cause: BaseException):
        self.channel = channel
        self.cause = cause
        reason = str(cause) or type(cause).__name__
        super().__init__(f"Handler for channel '{channel}' failed: {reason}")


class CommandNotFoundError(PluginError):
    """No command or tool with the requested name is registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown command: {name}")


class PermissionDeniedError(PluginError):
    """The caller's permission level does not satisfy the capability's visibility."""

    def __init__(self, name: str, level: str, required: Optional[str] = None):
        self.name = name
        self.level = level
        self.required = required
        super().__init__(
            f"Permission denied for '{name}': caller is '{level}', requires '{required}'"
        )
