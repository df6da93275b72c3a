"""Global constants for the plugin runtime."""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def parse_seconds(raw: str) -> Optional[float]:
    """Parse a non-negative number of seconds, or None if `raw` is not one."""
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def env_seconds(name: str, default: float) -> float:
    """Read seconds from the environment, falling back to `default` when unset or invalid."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    value = parse_seconds(raw)
    if value is None:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default
    return value


# Directory paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent

BUNDLED_PLUGINS_DIR = PROJECT_ROOT / "plugins" / "bundled"

# Runtime config file (permissions, hook timeout, per-plugin config)
RUNTIME_CONFIG_FILE = Path(
    os.getenv("BRAINS_CONFIG_FILE", str(PROJECT_ROOT / "config" / "runtime.json"))
)

# Extra plugin search paths, separated like PATH
PLUGIN_PATHS = [
    Path(p) for p in os.getenv("BRAINS_PLUGIN_PATHS", "").split(os.pathsep) if p
]

# Seconds a single lifecycle hook may run before it counts as failed (0 disables)
PLUGIN_HOOK_TIMEOUT = env_seconds("PLUGIN_HOOK_TIMEOUT", 30.0)

# Channel broadcast once all plugins are initialized
SYSTEM_READY_CHANNEL = "system:plugins:ready"

# Source name used for messages the runtime itself sends
RUNTIME_SOURCE = "plugin-manager"
