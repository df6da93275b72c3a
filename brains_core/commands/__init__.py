"""Commands, tools and resources contributed by plugins."""

from .models import Capability, Command, Resource, Tool
from .registry import CommandRegistry

__all__ = ["Capability", "Command", "CommandRegistry", "Resource", "Tool"]
