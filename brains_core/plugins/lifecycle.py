"""Plugin lifecycle management - runs hooks and handles state transitions."""

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Sequence

from brains_core.errors import PluginInitializationError
from brains_core.plugins.context import PluginContext
from brains_core.plugins.hooks import LifecycleHooks
from brains_core.plugins.registry import PluginInstance, PluginState

logger = logging.getLogger(__name__)


class PluginLifecycle:
    """Drives a single plugin through register -> initialize -> ready -> shutdown.

    Every hook runs under `hook_timeout` seconds (None or 0 disables the limit);
    a timeout counts as an error raised by the hook.
    """

    def __init__(self, hook_timeout: Optional[float] = None):
        self.hook_timeout = hook_timeout or None

    async def _call(self, hook: str, func: Callable[..., Any], *args: Any) -> Any:
        result = func(*args)
        if not inspect.isawaitable(result):
            return result
        if self.hook_timeout is None:
            return await result
        try:
            return await asyncio.wait_for(result, timeout=self.hook_timeout)
        except asyncio.TimeoutError:
            raise TimeoutError(f"{hook} timed out after {self.hook_timeout}s") from None

    async def initialize(
        self,
        instance: PluginInstance,
        context: PluginContext,
        dependency_ids: Sequence[str],
    ) -> None:
        """Register a plugin and run its startup hooks.

        Calls register(context), then on_dependency_initialized once per
        dependency in the given order, then on_initialize.

        Raises:
            PluginInitializationError: The plugin is left in REGISTERED state and
                anything it registered through its context is released
        """
        plugin_id = instance.id
        instance.state = PluginState.INITIALIZING
        instance.context = context
        instance.error = None
        hook = "register"

        try:
            result = await self._call(hook, instance.plugin.register, context)
            hooks = LifecycleHooks.from_result(result)
            instance.hooks = hooks

            if hooks.on_dependency_initialized is not None:
                hook = "on_dependency_initialized"
                for dependency_id in dependency_ids:
                    await self._call(hook, hooks.on_dependency_initialized, dependency_id)

            if hooks.on_initialize is not None:
                hook = "on_initialize"
                await self._call(hook, hooks.on_initialize)

        except Exception as e:
            context.release()
            instance.state = PluginState.REGISTERED
            instance.hooks = None
            instance.context = None
            error = PluginInitializationError(plugin_id, hook, e)
            instance.error = error
            logger.error(f"Failed to initialize plugin {plugin_id}: {error}")
            raise error from e

        instance.state = PluginState.INITIALIZED
        logger.info(f"Initialized plugin: {plugin_id}")

    async def ready(self, instance: PluginInstance) -> None:
        """Run on_ready for an initialized plugin.

        Raises:
            PluginInitializationError: The plugin stays INITIALIZED
        """
        hooks = instance.hooks
        if hooks is not None and hooks.on_ready is not None:
            try:
                await self._call("on_ready", hooks.on_ready)
            except Exception as e:
                error = PluginInitializationError(instance.id, "on_ready", e)
                instance.error = error
                logger.error(f"Plugin {instance.id} failed in on_ready: {e}")
                raise error from e

        instance.state = PluginState.READY
        logger.debug(f"Plugin ready: {instance.id}")

    async def shutdown(self, instance: PluginInstance) -> Optional[Exception]:
        """Run on_shutdown and release the plugin's subscriptions and capabilities.

        Returns:
            The exception raised by on_shutdown, if any (it is logged, not raised)
        """
        if not instance.is_active:
            logger.debug(f"Plugin {instance.id} not initialized, skip shutdown")
            return None

        instance.state = PluginState.SHUTTING_DOWN
        failure: Optional[Exception] = None
        try:
            hooks = instance.hooks
            if hooks is not None and hooks.on_shutdown is not None:
                await self._call("on_shutdown", hooks.on_shutdown)
        except Exception as e:
            failure = e
            instance.error = e
            logger.error(f"Failed to shut down plugin {instance.id}: {e}")
        finally:
            if instance.context is not None:
                instance.context.release()
            instance.state = PluginState.SHUTDOWN

        if failure is None:
            logger.info(f"Stopped plugin: {instance.id}")
        return failure
