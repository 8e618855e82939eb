"""Explicit build context for one stack.

A Stack owns one Topology, the EndpointResolver bound to it and one builder
per resource kind.  It is passed around instead of any process-wide state.
"""

from __future__ import annotations

from stackplan.builders import (
    AutoscalerBuilder,
    CacheBuilder,
    ClusterBuilder,
    NamespaceBuilder,
    NetworkBuilder,
    ResourceBuilder,
    ServiceBuilder,
)
from stackplan.endpoints import EndpointResolver
from stackplan.errors import InvalidConfigError, Violation
from stackplan.graph import ResourceKind, ResourceNode, Topology
from stackplan.models.endpoints import EndpointDescriptor, EndpointProtocol
from stackplan.models.plan import Plan
from stackplan.models.resources import ResourceConfig
from stackplan.plan.emitter import PlanEmitter
from stackplan.plan.state import AppliedState


class Stack:
    """Topology under construction plus the builders that grow it."""

    def __init__(self, name: str = "default") -> None:
        self.name = name
        self.topology = Topology()
        self.resolver = EndpointResolver(self.topology)
        namespaces = NamespaceBuilder()
        self._builders: dict[ResourceKind, ResourceBuilder] = {
            ResourceKind.NETWORK: NetworkBuilder(),
            ResourceKind.CLUSTER: ClusterBuilder(),
            ResourceKind.CACHE: CacheBuilder(),
            ResourceKind.NAMESPACE: namespaces,
            ResourceKind.SERVICE: ServiceBuilder(self.resolver, namespaces),
            ResourceKind.AUTOSCALER: AutoscalerBuilder(),
        }

    def builder_for(self, kind: ResourceKind | str) -> ResourceBuilder:
        try:
            return self._builders[ResourceKind(kind)]
        except (KeyError, ValueError):
            raise InvalidConfigError([Violation("", "kind", f"resources of kind '{kind}' cannot be declared")]) from None

    def validate(self, config: ResourceConfig) -> None:
        self.builder_for(config.kind).validate(config)

    def add(self, config: ResourceConfig) -> list[ResourceNode]:
        """Validate ``config`` and materialize it; returns the nodes created."""
        builder = self.builder_for(config.kind)
        builder.validate(config)
        return builder.materialize(self.topology, config)

    def resolve(self, producer: str, protocol: EndpointProtocol | str) -> EndpointDescriptor:
        return self.resolver.resolve(producer, protocol)

    def plan(self, state: AppliedState | None = None) -> Plan:
        return PlanEmitter().emit(self.topology, stack=self.name, state=state)

    def environments(self) -> dict[str, dict[str, str]]:
        """Environment of every service, in declaration order."""
        return {
            node.name: dict(node.config.environment)
            for node in self.topology.nodes_of_kind(ResourceKind.SERVICE)
        }
