"""Capability models contributed by plugins: commands, tools, resources."""

from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from brains_core.permissions import PermissionLevel


class Capability(BaseModel):
    """Common fields of anything a plugin exposes to callers.

    An unset visibility is treated as anchor-only by CommandRegistry lookups.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    visibility: Optional[PermissionLevel] = None
    handler: Callable[..., Any] = Field(..., exclude=True)
    plugin_id: str = ""

    @property
    def effective_visibility(self) -> PermissionLevel:
        return self.visibility or PermissionLevel.ANCHOR

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for help listings and the introspection API."""
        return {
            "name": self.name,
            "plugin_id": self.plugin_id,
            "description": self.description,
            "visibility": self.effective_visibility.value,
        }


class Command(Capability):
    """A command invoked by name from a message interface."""

    usage: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        info = super().to_dict()
        info["usage"] = self.usage
        return info


class Tool(Capability):
    """A tool exposed to AI agents, with an optional JSON schema for its input."""

    input_schema: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        info = super().to_dict()
        info["input_schema"] = self.input_schema
        return info


class Resource(Capability):
    """A readable resource addressed by URI."""

    uri: str = Field(..., min_length=1)

    def to_dict(self) -> Dict[str, Any]:
        info = super().to_dict()
        info["uri"] = self.uri
        return info
