"""FastAPI host for the plugin runtime.

Run with `python -m brains_core.app`; plugins are discovered from the bundled
directory and BRAINS_PLUGIN_PATHS.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from dotenv import find_dotenv, load_dotenv

# Load .env before brains_core.constants reads the environment
load_dotenv(find_dotenv(usecwd=True))

from fastapi import FastAPI

from brains_core.commands import CommandRegistry
from brains_core.constants import BUNDLED_PLUGINS_DIR, PLUGIN_PATHS, RUNTIME_CONFIG_FILE
from brains_core.messaging import MessageBus
from brains_core.permissions import PermissionService
from brains_core.plugins.config import RuntimeConfigService
from brains_core.plugins.discovery import PluginDiscovery
from brains_core.plugins.manager import PluginManager
from brains_core.routers import plugins_router

logger = logging.getLogger(__name__)


def build_manager(
    config_service: RuntimeConfigService,
    services: Optional[Dict[str, Any]] = None,
) -> PluginManager:
    """Wire the permission service, bus, registry and manager from config."""
    permission_service = PermissionService(config_service.get_permission_config())
    return PluginManager(
        message_bus=MessageBus(),
        command_registry=CommandRegistry(permission_service),
        services=services,
        plugin_configs=config_service.get_plugin_configs(),
        hook_timeout=config_service.get_hook_timeout(),
    )


def register_discovered(manager: PluginManager, search_paths: Sequence[Path]) -> List[str]:
    """Discover plugins in `search_paths` and register them with the manager."""
    registered = []
    for plugin in PluginDiscovery(search_paths).discover_all():
        if manager.register_plugin(plugin):
            registered.append(plugin.id)
    return registered


def create_app(manager: PluginManager) -> FastAPI:
    """Create the HTTP app; plugins start with the app and stop with it."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting plugin runtime")
        await manager.initialize_plugins()
        try:
            yield
        finally:
            logger.info("Shutting down plugin runtime")
            await manager.shutdown_plugins()

    app = FastAPI(
        title="Brains Plugin Runtime",
        description="Plugin lifecycle, messaging and capability introspection",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.plugin_manager = manager
    app.include_router(plugins_router)
    return app


def main() -> None:
    import uvicorn

    log_level = os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config_service = RuntimeConfigService(RUNTIME_CONFIG_FILE)
    manager = build_manager(config_service)
    register_discovered(manager, [BUNDLED_PLUGINS_DIR, *PLUGIN_PATHS])

    port = int(os.getenv("PORT", "9090"))
    uvicorn.run(create_app(manager), host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
