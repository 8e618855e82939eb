"""Data structures for the resource topology."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stackplan.models.resources import ResourceConfig


class ResourceKind(StrEnum):
    """Kinds of resources a topology can hold."""

    NETWORK = "network"
    CLUSTER = "cluster"
    CACHE = "cache"
    CACHE_SUBNET_GROUP = "cache-subnet-group"
    NAMESPACE = "namespace"
    DNS_RECORD = "dns-record"
    SERVICE = "service"
    LOAD_BALANCER = "load-balancer"
    AUTOSCALER = "autoscaler"


@dataclass(eq=False)
class ResourceNode:
    """A declared resource in the topology.

    Identity and config are fixed at creation.  Only the Topology mutates
    ``dependencies`` and ``dependents``.
    """

    kind: ResourceKind
    name: str
    config: ResourceConfig
    dependencies: list[str] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)  # back-links, non-owning

    @property
    def key(self) -> tuple[str, str]:
        """Return the (kind, name) identity of this node."""
        return (self.kind.value, self.name)

    @property
    def payload(self) -> dict[str, Any]:
        """Kind-specific configuration as a plain JSON-compatible mapping."""
        return self.config.model_dump(mode="json", exclude_none=True)

    def fingerprint(self) -> str:
        """Stable digest of the payload, used to detect config drift between runs."""
        encoded = json.dumps(self.payload, sort_keys=True, separators=(",", ":"))
        return hashlib.sha1(encoded.encode("utf-8")).hexdigest()[:16]
