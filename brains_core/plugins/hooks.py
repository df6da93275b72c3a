"""Lifecycle hooks returned by a plugin's register() entry point."""

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

HOOK_NAMES = ("on_initialize", "on_ready", "on_shutdown", "on_dependency_initialized")


@dataclass
class LifecycleHooks:
    """Optional callables the manager invokes at defined points.

    Each hook may be a plain function or a coroutine function.
    on_dependency_initialized receives the dependency's plugin id.
    """

    on_initialize: Optional[Callable[[], Any]] = None
    on_ready: Optional[Callable[[], Any]] = None
    on_shutdown: Optional[Callable[[], Any]] = None
    on_dependency_initialized: Optional[Callable[[str], Any]] = None

    @classmethod
    def from_result(cls, result: Any) -> "LifecycleHooks":
        """Normalize whatever register() returned.

        Accepts a LifecycleHooks, None (no hooks), a mapping of hook names,
        or any object exposing hook methods (e.g. a plugin class instance).
        """
        if result is None:
            return cls()
        if isinstance(result, LifecycleHooks):
            return result
        if isinstance(result, Mapping):
            unknown = set(result) - set(HOOK_NAMES)
            if unknown:
                raise TypeError(f"Unknown lifecycle hook(s): {', '.join(sorted(unknown))}")
            hooks = dict(result)
        else:
            hooks = {name: getattr(result, name, None) for name in HOOK_NAMES}

        for name, hook in hooks.items():
            if hook is not None and not callable(hook):
                raise TypeError(f"Lifecycle hook '{name}' is not callable")
        return cls(**hooks)
