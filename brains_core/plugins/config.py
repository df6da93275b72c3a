"""Runtime configuration service - manages the runtime JSON config file."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from brains_core.constants import PLUGIN_HOOK_TIMEOUT
from brains_core.permissions import PermissionConfig

logger = logging.getLogger(__name__)


class RuntimeConfigService:
    """Manages the runtime config file.

    Config format:
    {
        "hook_timeout": 30,
        "permissions": {
            "anchors": ["cli:admin"],
            "trusted": ["matrix:@helper:example.org"],
            "rules": [{"pattern": "cli:*", "level": "trusted"}]
        },
        "plugins": {
            "dashboard": {"title": "Brain"}
        }
    }
    """

    def __init__(self, config_file: Path):
        self.config_file = config_file
        self._config: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        """Load config from file, creating defaults if not found."""
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
                logger.error(f"Runtime config {self.config_file} must be a JSON object")
            except (json.JSONDecodeError, IOError) as e:
                logger.error(f"Error loading runtime config: {e}")

        return {"permissions": {}, "plugins": {}}

    def _save(self) -> None:
        """Save config to file."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved runtime config to {self.config_file}")

    def get_permission_config(self) -> PermissionConfig:
        """Get the validated permission section.

        An invalid section is logged and replaced by an empty config,
        which resolves every caller to public.
        """
        try:
            return PermissionConfig.model_validate(self._config.get("permissions") or {})
        except ValidationError as e:
            logger.error(f"Invalid permissions in {self.config_file}, falling back to public-only: {e}")
            return PermissionConfig()

    def validate(self) -> list[str]:
        """Return a list of problems with the loaded config (empty if valid)."""
        problems = []
        try:
            PermissionConfig.model_validate(self._config.get("permissions") or {})
        except ValidationError as e:
            problems.append(f"permissions: {e}")

        timeout = self._config.get("hook_timeout")
        if timeout is not None and (not isinstance(timeout, (int, float)) or timeout < 0):
            problems.append(f"hook_timeout must be a non-negative number, got {timeout!r}")

        if not isinstance(self._config.get("plugins", {}), dict):
            problems.append("plugins must be an object keyed by plugin id")
        return problems

    def get_hook_timeout(self) -> Optional[float]:
        """Get the per-hook timeout in seconds (None disables it)."""
        timeout = self._config.get("hook_timeout", PLUGIN_HOOK_TIMEOUT)
        if not isinstance(timeout, (int, float)) or timeout < 0:
            logger.error(f"Invalid hook_timeout {timeout!r}, using {PLUGIN_HOOK_TIMEOUT}")
            timeout = PLUGIN_HOOK_TIMEOUT
        return float(timeout) or None

    def get_plugin_config(self, plugin_id: str) -> Dict[str, Any]:
        """Get configuration for a specific plugin."""
        return self._config.get("plugins", {}).get(plugin_id, {})

    def get_plugin_configs(self) -> Dict[str, Dict[str, Any]]:
        return dict(self._config.get("plugins", {}))

    def update_plugin_config(self, plugin_id: str, config: Dict[str, Any]) -> None:
        """Update configuration for a specific plugin."""
        plugins = self._config.setdefault("plugins", {})
        plugins[plugin_id] = config
        self._save()
        logger.info(f"Updated config for plugin: {plugin_id}")

    def update_permissions(self, permissions: PermissionConfig) -> None:
        self._config["permissions"] = permissions.model_dump(mode="json")
        self._save()
        logger.info("Updated permission config")

    def reload(self) -> None:
        """Reload config from disk."""
        self._config = self._load()
