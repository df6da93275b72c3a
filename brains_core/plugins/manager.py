"""Plugin manager - top-level orchestrator for the plugin runtime."""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from brains_core.commands import CommandRegistry
from brains_core.constants import PLUGIN_HOOK_TIMEOUT, RUNTIME_SOURCE, SYSTEM_READY_CHANNEL
from brains_core.errors import InvalidPluginError, MissingDependencyError, PluginInitializationError
from brains_core.messaging import MessageBus
from brains_core.plugins.context import PluginContext
from brains_core.plugins.graph import DependencyGraph
from brains_core.plugins.lifecycle import PluginLifecycle
from brains_core.plugins.manifest import Plugin
from brains_core.plugins.registry import ACTIVE_STATES, PluginInstance, PluginRegistry, PluginState

logger = logging.getLogger(__name__)

PluginListener = Callable[..., Any]


class PluginEvent(str, Enum):
    """Events emitted by the manager; listeners receive the plugin id first."""

    REGISTERED = "registered"
    BEFORE_INITIALIZE = "before_initialize"
    INITIALIZED = "initialized"
    READY = "ready"
    ERROR = "error"
    SHUTDOWN = "shutdown"
    DISABLED = "disabled"
    ENABLED = "enabled"


class PluginManager:
    """Top-level plugin runtime orchestrator.

    Holds the plugin table, initializes plugins in dependency order, drives
    their lifecycle hooks and broadcasts the system-ready signal once every
    plugin is up.
    """

    def __init__(
        self,
        message_bus: MessageBus,
        command_registry: CommandRegistry,
        services: Optional[Dict[str, Any]] = None,
        plugin_configs: Optional[Dict[str, dict]] = None,
        hook_timeout: Optional[float] = PLUGIN_HOOK_TIMEOUT,
    ):
        self.message_bus = message_bus
        self.command_registry = command_registry
        self.services = dict(services or {})
        self.plugin_configs = dict(plugin_configs or {})

        self.registry = PluginRegistry()
        self.lifecycle = PluginLifecycle(hook_timeout)
        self._initialization_order: List[str] = []
        self._listeners: Dict[PluginEvent, List[PluginListener]] = {}

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: PluginEvent, listener: PluginListener) -> Callable[[], None]:
        """Listen for a plugin event.

        Returns:
            Disposer that removes the listener
        """
        listeners = self._listeners.setdefault(PluginEvent(event), [])
        listeners.append(listener)

        def remove() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return remove

    def _emit(self, event: PluginEvent, plugin_id: str, *args: Any) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(plugin_id, *args)
            except Exception as e:
                logger.error(f"Listener for '{event.value}' failed on {plugin_id}: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_plugin(self, plugin: Plugin) -> bool:
        """Add a plugin to the table without initializing it.

        Returns:
            False if a plugin with the same id is already registered

        Raises:
            InvalidPluginError: If `plugin` is not a Plugin
        """
        if not isinstance(plugin, Plugin):
            raise InvalidPluginError(f"Expected a Plugin, got {type(plugin).__name__}")

        logger.debug(f"Registering plugin: {plugin.id} ({plugin.version})")
        if self.registry.register(plugin) is None:
            return False

        self._emit(PluginEvent.REGISTERED, plugin.id)
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _build_graph(self) -> DependencyGraph:
        return DependencyGraph({p.id: p.plugin.dependencies for p in self.registry.get_all()})

    async def initialize_plugins(self) -> List[str]:
        """Initialize every registered plugin in dependency order.

        The graph is validated and sorted before any plugin runs. The first
        plugin failure aborts the sequence. Once all plugins are initialized,
        on_ready runs in initialization order for every plugin that is not
        ready yet (including ones whose on_ready failed on an earlier call),
        then the system-ready signal is broadcast.

        Returns:
            IDs of the plugins initialized by this call, in order

        Raises:
            MissingDependencyError: A dependency is not registered
            DependencyCycleError: The dependency graph has a cycle
            PluginInitializationError: A plugin's register() or hook failed
        """
        pending = [p.id for p in self.registry.get_by_state(PluginState.REGISTERED, PluginState.SHUTDOWN)]
        unready = self.registry.get_by_state(PluginState.INITIALIZED)
        if not pending and not unready:
            logger.info("No plugins to initialize")
            return []

        initialized: List[str] = []
        if pending:
            logger.info(f"Initializing {len(pending)} plugin(s)...")
            graph = self._build_graph()
            graph.validate(pending)
            active = [p.id for p in self.registry.get_by_state(*ACTIVE_STATES)]
            order = graph.topological_order(pending, done=active)

            for plugin_id in order:
                await self._initialize_plugin(plugin_id, graph, initialized)

        ready: List[str] = []
        for plugin_id in self._initialization_order:
            instance = self.registry.get(plugin_id)
            if instance.state is not PluginState.INITIALIZED:
                continue
            try:
                await self.lifecycle.ready(instance)
            except PluginInitializationError as e:
                self._emit(PluginEvent.ERROR, plugin_id, e)
                raise
            ready.append(plugin_id)
            self._emit(PluginEvent.READY, plugin_id)

        logger.info(
            f"Initialized {len(initialized)} of {self.registry.count()} plugins, {len(ready)} became ready"
        )

        await self.message_bus.send(
            SYSTEM_READY_CHANNEL,
            {"plugins": ready},
            source=RUNTIME_SOURCE,
            broadcast=True,
        )
        return initialized

    async def _initialize_plugin(
        self, plugin_id: str, graph: DependencyGraph, initialized: List[str]
    ) -> None:
        instance = self.registry.get(plugin_id)
        if instance.is_active:
            return

        dependencies = graph.dependencies_of(plugin_id)
        for dependency_id in dependencies:
            dependency = self.registry.get(dependency_id)
            if dependency is None:
                raise MissingDependencyError(plugin_id, dependency_id)
            if not dependency.is_active:
                await self._initialize_plugin(dependency_id, graph, initialized)

        # Notify in the order the dependencies finished initializing
        satisfied = sorted(set(dependencies), key=self._initialization_order.index)

        context = PluginContext(
            plugin_id=plugin_id,
            config=self.plugin_configs.get(plugin_id, {}),
            message_bus=self.message_bus,
            command_registry=self.command_registry,
            services=self.services,
        )

        self._emit(PluginEvent.BEFORE_INITIALIZE, plugin_id)
        try:
            await self.lifecycle.initialize(instance, context, satisfied)
        except PluginInitializationError as e:
            self._emit(PluginEvent.ERROR, plugin_id, e)
            raise

        if plugin_id in self._initialization_order:
            self._initialization_order.remove(plugin_id)
        self._initialization_order.append(plugin_id)
        initialized.append(plugin_id)
        self._emit(PluginEvent.INITIALIZED, plugin_id)

    async def shutdown_plugins(self) -> Dict[str, Exception]:
        """Shut down initialized plugins, dependents before their dependencies.

        A failing on_shutdown is logged and does not stop the others.

        Returns:
            Mapping of plugin id to the exception its on_shutdown raised
        """
        failures: Dict[str, Exception] = {}
        for plugin_id in reversed(self._initialization_order):
            instance = self.registry.get(plugin_id)
            if instance is None or not instance.is_active:
                continue

            error = await self.lifecycle.shutdown(instance)
            if error is not None:
                failures[plugin_id] = error
                self._emit(PluginEvent.ERROR, plugin_id, error)
            self._emit(PluginEvent.SHUTDOWN, plugin_id)

        self._initialization_order = [
            plugin_id for plugin_id in self._initialization_order
            if self.registry.get(plugin_id).is_active
        ]
        if failures:
            logger.warning(f"Plugin shutdown finished with {len(failures)} failure(s): {list(failures)}")
        else:
            logger.info("All plugins stopped")
        return failures

    # ------------------------------------------------------------------
    # Enable / disable
    # ------------------------------------------------------------------

    def disable_plugin(self, plugin_id: str) -> bool:
        """Hide a plugin's commands and tools without shutting it down."""
        instance = self.registry.get(plugin_id)
        if not instance:
            logger.warning(f"Cannot disable plugin {plugin_id}: not registered")
            return False

        instance.enabled = False
        self.command_registry.disable_plugin(plugin_id)
        self._emit(PluginEvent.DISABLED, plugin_id)
        logger.info(f"Disabled plugin: {plugin_id}")
        return True

    def enable_plugin(self, plugin_id: str) -> bool:
        """Re-enable a disabled plugin."""
        instance = self.registry.get(plugin_id)
        if not instance:
            logger.warning(f"Cannot enable plugin {plugin_id}: not registered")
            return False
        if instance.enabled:
            logger.warning(f"Cannot enable plugin {plugin_id}: not disabled")
            return False

        instance.enabled = True
        self.command_registry.enable_plugin(plugin_id)
        self._emit(PluginEvent.ENABLED, plugin_id)
        logger.info(f"Enabled plugin: {plugin_id}")
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def initialization_order(self) -> List[str]:
        return list(self._initialization_order)

    def get_plugin(self, plugin_id: str) -> Optional[Plugin]:
        instance = self.registry.get(plugin_id)
        return instance.plugin if instance else None

    def get_plugin_status(self, plugin_id: str) -> Optional[PluginState]:
        instance = self.registry.get(plugin_id)
        return instance.state if instance else None

    def has_plugin(self, plugin_id: str) -> bool:
        return self.registry.has(plugin_id)

    def is_plugin_initialized(self, plugin_id: str) -> bool:
        instance = self.registry.get(plugin_id)
        return bool(instance and instance.is_active)

    def get_all_plugin_ids(self) -> List[str]:
        return self.registry.ids()

    def get_all_plugins(self) -> List[PluginInstance]:
        return self.registry.get_all()

    def get_failed_plugins(self) -> List[Tuple[str, Exception]]:
        """Plugins whose last register/hook call failed."""
        return [(p.id, p.error) for p in self.registry.get_failed()]

    def get_plugin_info(self, plugin_id: str) -> Optional[dict]:
        """Get plugin information as dict."""
        instance = self.registry.get(plugin_id)
        if not instance:
            return None
        info = instance.to_dict()
        info["config"] = self.plugin_configs.get(plugin_id, {})
        info["commands"] = [c.name for c in self.command_registry.get_commands_from_plugin(plugin_id)]
        info["tools"] = [t.name for t in self.command_registry.get_tools_from_plugin(plugin_id)]
        return info

    def list_plugins(self) -> List[dict]:
        """List all plugins as dicts."""
        return [p.to_dict() for p in self.registry.get_all()]
