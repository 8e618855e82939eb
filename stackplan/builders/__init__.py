"""Resource builders.

One builder per declared resource kind.  Each validates a typed config and
materializes it into a Topology, declaring edges to whatever it depends on.

Exports:
    ResourceBuilder    -- ABC every builder implements (validate/materialize).
    NetworkBuilder     -- virtual network.
    ClusterBuilder     -- container cluster in a network.
    CacheBuilder       -- managed cache plus its subnet group.
    NamespaceBuilder   -- discovery namespace and per-service DNS records.
    ServiceBuilder     -- container service, load balancer, endpoint wiring.
    AutoscalerBuilder  -- capacity policy for exactly one service.
"""

from stackplan.builders.autoscaler import AutoscalerBuilder
from stackplan.builders.base import ResourceBuilder
from stackplan.builders.cache import CacheBuilder
from stackplan.builders.cluster import ClusterBuilder
from stackplan.builders.namespace import NamespaceBuilder
from stackplan.builders.network import NetworkBuilder
from stackplan.builders.service import ServiceBuilder

__all__ = [
    "AutoscalerBuilder",
    "CacheBuilder",
    "ClusterBuilder",
    "NamespaceBuilder",
    "NetworkBuilder",
    "ResourceBuilder",
    "ServiceBuilder",
]
