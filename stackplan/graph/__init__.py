"""Resource topology for declared stacks.

Provides the in-memory graph of declared resources (networks, clusters,
caches, namespaces, services, autoscalers) and the dependency edges between
them.  Edges are checked for cycles as they are added.
"""

from stackplan.graph.models import ResourceKind, ResourceNode
from stackplan.graph.topology import Topology

__all__ = [
    "ResourceKind",
    "ResourceNode",
    "Topology",
]
