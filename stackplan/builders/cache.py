"""Managed cache builder.

A cache materializes as two nodes: a subnet group spanning the network's
private subnets, and the cache cluster placed in that group.
"""

from __future__ import annotations

from stackplan.builders.base import ResourceBuilder, check_range
from stackplan.errors import DuplicateNameError, Violation
from stackplan.graph.models import ResourceKind, ResourceNode
from stackplan.graph.topology import Topology
from stackplan.models.resources import CacheConfig, CacheSubnetGroupConfig

SUPPORTED_ENGINES = ("redis",)
_MAX_DATABASE = 15


def subnet_group_name(cache_name: str) -> str:
    return f"{cache_name}-subnet-group"


class CacheBuilder(ResourceBuilder):
    kind = ResourceKind.CACHE
    config_type = CacheConfig

    def check(self, config: CacheConfig) -> list[Violation]:  # type: ignore[override]
        violations: list[Violation] = []
        if not config.network:
            violations.append(Violation(config.name, "network", "is required"))
        if config.engine not in SUPPORTED_ENGINES:
            violations.append(
                Violation(config.name, "engine", f"unsupported engine '{config.engine}', expected one of {SUPPORTED_ENGINES}")
            )
        if not config.node_type.startswith("cache."):
            violations.append(Violation(config.name, "node_type", f"'{config.node_type}' is not a cache node type"))
        # A redis cache cluster without replication groups is always a single node
        check_range(violations, config.name, "num_nodes", config.num_nodes, 1, 1)
        check_range(violations, config.name, "port", config.port, 1024, 65535)
        check_range(violations, config.name, "database", config.database, 0, _MAX_DATABASE)
        return violations

    def materialize(self, topology: Topology, config: CacheConfig) -> list[ResourceNode]:  # type: ignore[override]
        self.reference(topology, config, "network", config.network, ResourceKind.NETWORK)
        group_name = subnet_group_name(config.name)
        for name in (group_name, config.name):
            if name in topology:
                raise DuplicateNameError(name)

        group = self.add_node(
            topology,
            CacheSubnetGroupConfig(
                name=group_name,
                network=config.network,
                cache=config.name,
                description=f"Private subnets used by cache {config.name}",
            ),
            depends_on=[config.network],
        )
        cache = self.add_node(topology, config, depends_on=[config.network, group.name])
        return [group, cache]
