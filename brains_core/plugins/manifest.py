"""Plugin definitions - the static identity a package contributes to the runtime."""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

from pydantic import BaseModel, Field

from brains_core.errors import InvalidPluginError


class PluginManifest(BaseModel):
    """Plugin manifest loaded from plugin.json."""

    id: str = Field(..., min_length=1, description="Unique plugin identifier (kebab-case)")
    name: str = Field(default="", description="Human-readable plugin name")
    version: str = Field(default="1.0.0", description="Plugin version")
    description: str = Field(default="", description="Plugin description")
    dependencies: List[str] = Field(
        default_factory=list,
        description="IDs of plugins that must be initialized before this one",
    )
    entry_point: str = Field(
        default="plugin:register",
        description="Python module:function path relative to plugin directory, e.g. 'plugin:register'",
    )


@dataclass(frozen=True)
class Plugin:
    """A registrable plugin.

    `register` is called with the plugin's PluginContext and returns its
    lifecycle hooks (see LifecycleHooks.from_result for accepted shapes).
    """

    id: str
    version: str
    register: Callable[..., Any] = field(repr=False, compare=False)
    dependencies: Tuple[str, ...] = ()
    description: str = ""
    package_name: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id.strip():
            raise InvalidPluginError("Plugin must have a non-empty string id")
        if not isinstance(self.version, str):
            raise InvalidPluginError(f"Plugin '{self.id}' version must be a string")
        if not callable(self.register):
            raise InvalidPluginError(f"Plugin '{self.id}' register entry point is not callable")

        dependencies = self.dependencies
        if isinstance(dependencies, str) or not all(isinstance(d, str) for d in dependencies):
            raise InvalidPluginError(f"Plugin '{self.id}' dependencies must be a list of plugin ids")
        object.__setattr__(self, "dependencies", tuple(dependencies))

    @classmethod
    def from_manifest(cls, manifest: PluginManifest, register: Callable[..., Any]) -> "Plugin":
        return cls(
            id=manifest.id,
            version=manifest.version,
            register=register,
            dependencies=tuple(manifest.dependencies),
            description=manifest.description,
        )
