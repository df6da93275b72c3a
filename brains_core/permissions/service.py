"""Permission evaluation - maps (interface, user) identities to permission levels."""

import logging
import re
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Pattern, Tuple, TypeVar

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PermissionLevel(str, Enum):
    """Caller permission levels, ordered public < trusted < anchor."""

    PUBLIC = "public"
    TRUSTED = "trusted"
    ANCHOR = "anchor"

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS = {
    PermissionLevel.PUBLIC: 0,
    PermissionLevel.TRUSTED: 1,
    PermissionLevel.ANCHOR: 2,
}


class PermissionRule(BaseModel):
    """A glob-style rule matched against `interfaceType:userId`."""

    pattern: str = Field(..., description="Composite key pattern, '*' matches any run of characters")
    level: PermissionLevel


class PermissionConfig(BaseModel):
    """Permission configuration consumed by PermissionService."""

    anchors: List[str] = Field(default_factory=list)
    trusted: List[str] = Field(default_factory=list)
    rules: List[PermissionRule] = Field(default_factory=list)


def identity_key(interface_type: str, user_id: str) -> str:
    """Build the composite identity used for list and pattern matching."""
    return f"{interface_type}:{user_id}"

    """Compile a glob pattern where only '*' is special; match it with fullmatch."""
def compile_pattern(pattern: str) -> Pattern[str]:
    """Compile a glob pattern where only '*' is special."""
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(regex, re.DOTALL)


def has_permission(granted: PermissionLevel, required: PermissionLevel) -> bool:
    """Check whether a granted level satisfies a required level."""
    return PermissionLevel(granted).rank >= PermissionLevel(required).rank


def _visibility_of(item: Any) -> Optional[PermissionLevel]:
    if isinstance(item, Mapping):
        value = item.get("visibility")
    else:
        value = getattr(item, "visibility", None)
    return PermissionLevel(value) if value is not None else None


def filter_by_permission(items: Iterable[T], level: PermissionLevel) -> List[T]:
    """Keep the items a caller at `level` may see.

    Items without a visibility are treated as public. Command lookups in
    CommandRegistry apply a stricter default and do not go through this.
    """
    visible = []
    for item in items:
        required = _visibility_of(item) or PermissionLevel.PUBLIC
        if has_permission(level, required):
            visible.append(item)
    return visible


class PermissionService:
    """Resolves caller identities to permission levels.

    Evaluation order, first match wins:
    explicit anchors, explicit trusted, pattern rules in order, then public.
    """

    def __init__(self, config: Optional[PermissionConfig] = None):
        self.config = config or PermissionConfig()
        self._anchors = set(self.config.anchors)
        self._trusted = set(self.config.trusted)
        self._rules: List[Tuple[Pattern[str], PermissionLevel]] = [
            (compile_pattern(rule.pattern), rule.level) for rule in self.config.rules
        ]
        logger.debug(
            f"Permission service configured: {len(self._anchors)} anchor(s), "
            f"{len(self._trusted)} trusted, {len(self._rules)} rule(s)"
        )

    def determine_level(self, interface_type: str, user_id: str) -> PermissionLevel:
        """Determine the permission level for a user on a given interface."""
        key = identity_key(interface_type, user_id)

        if key in self._anchors:
            return PermissionLevel.ANCHOR
        if key in self._trusted:
            return PermissionLevel.TRUSTED

        for regex, level in self._rules:
            if regex.fullmatch(key):
                return level

        return PermissionLevel.PUBLIC

    @staticmethod
    def has_permission(granted: PermissionLevel, required: PermissionLevel) -> bool:
        return has_permission(granted, required)

    @staticmethod
    def filter_by_permission(items: Iterable[T], level: PermissionLevel) -> List[T]:
        return filter_by_permission(items, level)
