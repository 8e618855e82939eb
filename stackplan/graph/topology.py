"""In-memory resource topology with incremental cycle checking."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

import structlog

from stackplan.errors import CycleDetectedError, DuplicateNameError, UnknownNodeError
from stackplan.graph.models import ResourceKind, ResourceNode

if TYPE_CHECKING:
    from stackplan.models.resources import ResourceConfig

_log = structlog.get_logger(component="graph.topology")


class Topology:
    """Graph of declared resources keyed by logical name.

    ``add_dependency(name, depends_on)`` records that ``name`` needs
    ``depends_on`` to exist first; in plan order ``depends_on`` comes earlier.
    The graph is kept acyclic at every step.
    """

    def __init__(self) -> None:
        # dicts preserve insertion order, which nodes() relies on
        self._nodes: dict[str, ResourceNode] = {}

    def add_node(self, name: str, kind: ResourceKind, config: ResourceConfig) -> ResourceNode:
        """Add a node; raises DuplicateNameError without touching the graph."""
        if name in self._nodes:
            raise DuplicateNameError(name)
        node = ResourceNode(kind=ResourceKind(kind), name=name, config=config)
        self._nodes[name] = node
        _log.debug("node_added", name=name, kind=node.kind.value)
        return node

    def add_dependency(self, name: str, depends_on: str) -> None:
        """Declare that ``name`` depends on ``depends_on``.

        Raises UnknownNodeError if either end is missing and CycleDetectedError
        if ``name`` is already reachable through ``depends_on``'s dependencies.
        """
        if name not in self._nodes:
            raise UnknownNodeError(name)
        if depends_on not in self._nodes:
            raise UnknownNodeError(depends_on, referenced_by=name)

        node = self._nodes[name]
        if depends_on in node.dependencies:
            return

        path = self._dependency_path(depends_on, name)
        if path is not None:
            raise CycleDetectedError([name, *path])

        node.dependencies.append(depends_on)
        self._nodes[depends_on].dependents.append(name)

    def _dependency_path(self, start: str, target: str) -> list[str] | None:
        """Return the dependency chain from ``start`` to ``target`` if one exists."""
        if start == target:
            return [start]
        parents: dict[str, str | None] = {start: None}
        stack = [start]
        while stack:
            current = stack.pop()
            for dep in self._nodes[current].dependencies:
                if dep in parents:
                    continue
                parents[dep] = current
                if dep == target:
                    chain = [dep]
                    step = parents[dep]
                    while step is not None:
                        chain.append(step)
                        step = parents[step]
                    return list(reversed(chain))
                stack.append(dep)
        return None

    def get(self, name: str) -> ResourceNode:
        """Return the node called ``name`` or raise UnknownNodeError."""
        try:
            return self._nodes[name]
        except KeyError:
            raise UnknownNodeError(name) from None

    def nodes(self) -> Iterator[ResourceNode]:
        """Iterate nodes in insertion order.  Each call starts a fresh pass."""
        yield from self._nodes.values()

    def nodes_of_kind(self, kind: ResourceKind) -> Iterator[ResourceNode]:
        return (node for node in self.nodes() if node.kind == kind)

    def edges(self) -> Iterator[tuple[str, str]]:
        """Yield ``(dependency, dependent)`` pairs in insertion order."""
        for node in self.nodes():
            for dep in node.dependencies:
                yield (dep, node.name)

    def dependents_of(self, name: str, kind: ResourceKind | None = None) -> list[ResourceNode]:
        node = self.get(name)
        result = [self._nodes[n] for n in node.dependents]
        if kind is not None:
            result = [n for n in result if n.kind == kind]
        return result

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ResourceNode]:
        return self.nodes()
