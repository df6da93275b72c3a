"""Dependency graph and ordering for plugin initialization."""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Sequence

from brains_core.errors import DependencyCycleError, MissingDependencyError

logger = logging.getLogger(__name__)


class _Color(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


class DependencyGraph:
    """Directed graph of plugin ids, built fresh for each initialization pass.

    `dependents` maps each plugin id to the ids that depend on it
    (edges point dependency -> dependent).
    """

    def __init__(self, dependencies: Mapping[str, Sequence[str]]):
        # Insertion order of `dependencies` is the registration order
        self._dependencies: Dict[str, List[str]] = {
            plugin_id: list(deps) for plugin_id, deps in dependencies.items()
        }
        self.dependents: Dict[str, List[str]] = {plugin_id: [] for plugin_id in self._dependencies}
        for plugin_id, deps in self._dependencies.items():
            for dep in deps:
                if dep in self.dependents and plugin_id not in self.dependents[dep]:
                    self.dependents[dep].append(plugin_id)

    def dependencies_of(self, plugin_id: str) -> List[str]:
        return list(self._dependencies.get(plugin_id, []))

    def validate(self, plugin_ids: Iterable[str]) -> None:
        """Check that every dependency of the given plugins exists.

        Raises:
            MissingDependencyError: naming the first offending plugin and dependency
        """
        for plugin_id in plugin_ids:
            for dep in self._dependencies.get(plugin_id, []):
                if dep not in self._dependencies:
                    raise MissingDependencyError(plugin_id, dep)

    def topological_order(self, plugin_ids: Iterable[str], done: Iterable[str] = ()) -> List[str]:
        """Order plugins so every dependency precedes its dependents.

        Depth-first traversal with three-color marking. Roots are visited in
        the order given and dependencies in declaration order, so plugins with
        no relative constraint keep their registration order.

        Args:
            plugin_ids: Plugins to order
            done: Plugins already initialized; treated as satisfied and not returned

        Raises:
            DependencyCycleError: naming the plugin at which the cycle was found
        """
        colors: Dict[str, _Color] = {plugin_id: _Color.UNVISITED for plugin_id in self._dependencies}
        for plugin_id in done:
            colors[plugin_id] = _Color.DONE

        order: List[str] = []

        def visit(plugin_id: str) -> None:
            color = colors.get(plugin_id, _Color.UNVISITED)
            if color is _Color.DONE:
                return
            if color is _Color.IN_PROGRESS:
                raise DependencyCycleError(plugin_id)

            colors[plugin_id] = _Color.IN_PROGRESS
            for dep in self._dependencies.get(plugin_id, []):
                visit(dep)
            colors[plugin_id] = _Color.DONE
            order.append(plugin_id)

        for plugin_id in plugin_ids:
            visit(plugin_id)

        logger.debug(f"Plugin initialization order: {order}")
        return order
