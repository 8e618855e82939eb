"""Builder base class and shared validation helpers."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import ClassVar

import structlog

from stackplan.errors import InvalidConfigError, UnknownNodeError, Violation
from stackplan.graph.models import ResourceKind, ResourceNode
from stackplan.graph.topology import Topology
from stackplan.models.resources import ResourceConfig
from stackplan.observability.metrics import nodes_materialized_total

_log = structlog.get_logger(component="builders")

_RE_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9-]{0,62}$")
_RE_DNS_LABEL = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")


def is_dns_label(value: str) -> bool:
    return bool(_RE_DNS_LABEL.match(value))


def check_range(
    violations: list[Violation],
    resource: str,
    field: str,
    value: float,
    low: float | None = None,
    high: float | None = None,
) -> None:
    """Append a violation if ``value`` falls outside ``[low, high]``."""
    if low is not None and value < low:
        violations.append(Violation(resource, field, f"must be >= {low}, got {value}"))
    elif high is not None and value > high:
        violations.append(Violation(resource, field, f"must be <= {high}, got {value}"))


class ResourceBuilder(ABC):
    """Validates one kind of resource config and materializes it into a topology.

    Subclasses set ``kind`` and ``config_type`` and implement ``check`` and
    ``materialize``.  ``validate`` never touches a topology; ``materialize``
    never touches anything but the topology it is given.
    """

    kind: ClassVar[ResourceKind]
    config_type: ClassVar[type[ResourceConfig]]

    def validate(self, config: ResourceConfig) -> None:
        """Raise InvalidConfigError listing every violated constraint."""
        if not isinstance(config, self.config_type):
            raise InvalidConfigError(
                [Violation(config.name, "kind", f"{self.kind.value} builder cannot build '{config.kind}'")]
            )
        violations: list[Violation] = []
        if not _RE_NAME.match(config.name):
            violations.append(
                Violation(
                    config.name,
                    "name",
                    "must start with a letter and contain only letters, digits and '-' (max 63)",
                )
            )
        violations.extend(self.check(config))
        if violations:
            raise InvalidConfigError(violations)

    @abstractmethod
    def check(self, config: ResourceConfig) -> list[Violation]:
        """Return kind-specific constraint violations (empty when valid)."""

    @abstractmethod
    def materialize(self, topology: Topology, config: ResourceConfig) -> list[ResourceNode]:
        """Add this resource's nodes and edges to ``topology``; return the new nodes."""

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    @staticmethod
    def reference(
        topology: Topology,
        config: ResourceConfig,
        field: str,
        target: str,
        expected: ResourceKind,
    ) -> ResourceNode:
        """Look up a node referenced by ``config.<field>`` and check its kind."""
        if target not in topology:
            raise UnknownNodeError(target, referenced_by=config.name)
        node = topology.get(target)
        if node.kind != expected:
            raise InvalidConfigError(
                [Violation(config.name, field, f"'{target}' is a {node.kind.value}, expected a {expected.value}")]
            )
        return node

    @staticmethod
    def add_node(
        topology: Topology,
        config: ResourceConfig,
        depends_on: list[str] | tuple[str, ...] = (),
    ) -> ResourceNode:
        """Add ``config`` as a node and wire its dependencies."""
        node = topology.add_node(config.name, ResourceKind(config.kind), config)
        for dep in depends_on:
            topology.add_dependency(node.name, dep)
        nodes_materialized_total.labels(kind=node.kind.value).inc()
        _log.debug("node_materialized", name=node.name, kind=node.kind.value, dependencies=node.dependencies)
        return node
