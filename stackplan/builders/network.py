"""Virtual network builder."""

from __future__ import annotations

import ipaddress

from stackplan.builders.base import ResourceBuilder, check_range
from stackplan.errors import Violation
from stackplan.graph.models import ResourceKind, ResourceNode
from stackplan.graph.topology import Topology
from stackplan.models.resources import NetworkConfig

_MIN_PREFIX = 16
_MAX_PREFIX = 28
_MAX_AZS = 6


class NetworkBuilder(ResourceBuilder):
    """Declares a network node.  Networks depend on nothing."""

    kind = ResourceKind.NETWORK
    config_type = NetworkConfig

    def check(self, config: NetworkConfig) -> list[Violation]:  # type: ignore[override]
        violations: list[Violation] = []
        try:
            network = ipaddress.IPv4Network(config.cidr, strict=True)
        except ValueError as exc:
            violations.append(Violation(config.name, "cidr", f"not a valid IPv4 network: {exc}"))
        else:
            if not _MIN_PREFIX <= network.prefixlen <= _MAX_PREFIX:
                violations.append(
                    Violation(
                        config.name,
                        "cidr",
                        f"prefix length must be between /{_MIN_PREFIX} and /{_MAX_PREFIX}, got /{network.prefixlen}",
                    )
                )
        check_range(violations, config.name, "max_azs", config.max_azs, 1, _MAX_AZS)
        if config.nat_gateways is not None:
            check_range(violations, config.name, "nat_gateways", config.nat_gateways, 0, config.max_azs)
        return violations

    def materialize(self, topology: Topology, config: NetworkConfig) -> list[ResourceNode]:  # type: ignore[override]
        return [self.add_node(topology, config)]
