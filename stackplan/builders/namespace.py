"""Service-discovery namespace builder.

A namespace is a private DNS zone.  Services register one record each through
``NamespaceBuilder.register``; record names are unique within a namespace,
compared case-insensitively.
"""

from __future__ import annotations

import re

from stackplan.builders.base import ResourceBuilder, is_dns_label
from stackplan.errors import DuplicateNameError, InvalidConfigError, Violation
from stackplan.graph.models import ResourceKind, ResourceNode
from stackplan.graph.topology import Topology
from stackplan.models.resources import DnsRecordConfig, NamespaceConfig

# Pattern for valid DNS domain names
DNS_DOMAIN_PATTERN = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?"
    r"(\.[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?)*$"
)


def record_fqdn(record_name: str, zone_name: str) -> str:
    return f"{record_name}.{zone_name}".lower()


class NamespaceBuilder(ResourceBuilder):
    kind = ResourceKind.NAMESPACE
    config_type = NamespaceConfig

    def check(self, config: NamespaceConfig) -> list[Violation]:  # type: ignore[override]
        violations: list[Violation] = []
        if not DNS_DOMAIN_PATTERN.match(config.zone_name) or len(config.zone_name) > 253:
            violations.append(Violation(config.name, "zone_name", f"'{config.zone_name}' is not a valid DNS domain"))
        if not config.network:
            violations.append(Violation(config.name, "network", "is required"))
        return violations

    def materialize(self, topology: Topology, config: NamespaceConfig) -> list[ResourceNode]:  # type: ignore[override]
        self.reference(topology, config, "network", config.network, ResourceKind.NETWORK)
        return [self.add_node(topology, config, depends_on=[config.network])]

    # ------------------------------------------------------------------
    # Record registration
    # ------------------------------------------------------------------

    def check_available(self, topology: Topology, namespace: str, record_name: str, target: str) -> str:
        """Verify ``record_name`` can be registered for ``target``; return its FQDN.

        Never mutates the topology.
        """
        ns = topology.get(namespace)
        if ns.kind != ResourceKind.NAMESPACE:
            raise InvalidConfigError(
                [Violation(target, "discovery.namespace", f"'{namespace}' is a {ns.kind.value}, expected a namespace")]
            )
        if not is_dns_label(record_name):
            raise InvalidConfigError(
                [Violation(target, "discovery.name", f"'{record_name}' is not a valid DNS label")]
            )
        wanted = record_name.lower()
        for record in topology.dependents_of(ns.name, kind=ResourceKind.DNS_RECORD):
            if record.config.record_name.lower() == wanted:
                raise InvalidConfigError(
                    [
                        Violation(
                            target,
                            "discovery.name",
                            f"'{record_name}' is already registered in namespace '{namespace}'"
                            f" by '{record.config.target}'",
                        )
                    ]
                )
        fqdn = record_fqdn(record_name, ns.config.zone_name)
        if fqdn in topology:
            raise DuplicateNameError(fqdn)
        return fqdn

    def register(self, topology: Topology, namespace: str, record_name: str, target: str) -> ResourceNode:
        """Create the DNS record node ``<record_name>.<zone>`` pointing at ``target``."""
        fqdn = self.check_available(topology, namespace, record_name, target)
        ns = topology.get(namespace)
        record = DnsRecordConfig(
            name=fqdn,
            namespace=namespace,
            zone_name=ns.config.zone_name,
            record_name=record_name,
            target=target,
        )
        return self.add_node(topology, record, depends_on=[namespace, target])
