"""Plugin discovery - scans directories for plugin.json manifests and loads entry points."""

import importlib.util
import json
import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from brains_core.errors import InvalidPluginError
from brains_core.plugins.manifest import Plugin, PluginManifest

logger = logging.getLogger(__name__)


class PluginDiscovery:
    """Discovers plugins by scanning directories for plugin.json manifests."""

    MANIFEST_FILE = "plugin.json"

    def __init__(self, search_paths: Sequence[Path]):
        """Initialize discovery with search paths.

        Args:
            search_paths: Directories searched in order; each holds one
                          subdirectory per plugin
        """
        self.search_paths = list(search_paths)

    def discover_manifests(self) -> List[Tuple[PluginManifest, Path]]:
        """Find every valid manifest without importing any plugin code.

        Returns:
            (manifest, plugin_dir) pairs; the first plugin found for an id wins
        """
        discovered = []
        seen_ids = set()

        for search_path in self.search_paths:
            if not search_path.exists():
                logger.debug(f"Plugin search path does not exist: {search_path}")
                continue

            for item in sorted(search_path.iterdir()):
                manifest_file = item / self.MANIFEST_FILE
                if not item.is_dir() or not manifest_file.exists():
                    continue

                manifest = self._load_manifest(manifest_file)
                if manifest is None:
                    continue
                if manifest.id in seen_ids:
                    logger.warning(
                        f"Duplicate plugin ID '{manifest.id}' found at {item}, "
                        f"skipping (first-found wins)"
                    )
                    continue
                seen_ids.add(manifest.id)
                discovered.append((manifest, item))

        return discovered

    def discover_all(self) -> List[Plugin]:
        """Discover and load all plugins from the configured search paths.

        Plugins whose entry point cannot be loaded are logged and skipped.
        """
        plugins = []
        for manifest, plugin_dir in self.discover_manifests():
            register = self.load_entry_point(manifest, plugin_dir)
            if register is None:
                continue
            try:
                plugins.append(Plugin.from_manifest(manifest, register))
            except InvalidPluginError as e:
                logger.error(f"Invalid plugin at {plugin_dir}: {e}")

        logger.info(f"Discovered {len(plugins)} plugin(s)")
        return plugins

    def _load_manifest(self, manifest_file: Path) -> Optional[PluginManifest]:
        try:
            with open(manifest_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            manifest = PluginManifest(**data)
            logger.debug(f"Discovered plugin: {manifest.id} at {manifest_file.parent}")
            return manifest

        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {manifest_file}: {e}")
        except (ValidationError, TypeError) as e:
            logger.error(f"Invalid manifest in {manifest_file}: {e}")
        except OSError as e:
            logger.error(f"Error reading {manifest_file}: {e}")

        return None

    def load_entry_point(self, manifest: PluginManifest, plugin_dir: Path) -> Optional[Callable]:
        """Import the plugin module and resolve its register function.

        Returns:
            The register callable, or None if it could not be loaded
        """
        try:
            module_name, func_name = manifest.entry_point.split(":")
            module_file = plugin_dir / f"{module_name.replace('.', '/')}.py"

            spec = importlib.util.spec_from_file_location(
                f"brains_plugin_{manifest.id.replace('-', '_')}_{module_name}",
                module_file,
            )
            if spec is None or spec.loader is None:
                raise ImportError(f"Cannot find module {module_name}.py in {plugin_dir}")

            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)

            register_func = getattr(module, func_name, None)
            if register_func is None:
                raise AttributeError(f"Module {module_name} has no function '{func_name}'")
            if not callable(register_func):
                raise TypeError(f"{module_name}.{func_name} is not callable")

            logger.info(f"Loaded plugin: {manifest.id}")
            return register_func

        except Exception as e:
            logger.error(f"Failed to load plugin {manifest.id}: {e}")
            return None
