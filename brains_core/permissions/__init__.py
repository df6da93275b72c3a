"""Permission levels and identity resolution."""

from .service import (
    PermissionConfig,
    PermissionLevel,
    PermissionRule,
    PermissionService,
    filter_by_permission,
    has_permission,
    identity_key,
)

__all__ = [
    "PermissionConfig",
    "PermissionLevel",
    "PermissionRule",
    "PermissionService",
    "filter_by_permission",
    "has_permission",
    "identity_key",
]
