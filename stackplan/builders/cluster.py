"""Container cluster builder."""

from __future__ import annotations

from stackplan.builders.base import ResourceBuilder
from stackplan.errors import Violation
from stackplan.graph.models import ResourceKind, ResourceNode
from stackplan.graph.topology import Topology
from stackplan.models.resources import ClusterConfig


class ClusterBuilder(ResourceBuilder):
    kind = ResourceKind.CLUSTER
    config_type = ClusterConfig

    def check(self, config: ClusterConfig) -> list[Violation]:  # type: ignore[override]
        if not config.network:
            return [Violation(config.name, "network", "is required")]
        return []

    def materialize(self, topology: Topology, config: ClusterConfig) -> list[ResourceNode]:  # type: ignore[override]
        self.reference(topology, config, "network", config.network, ResourceKind.NETWORK)
        return [self.add_node(topology, config, depends_on=[config.network])]
