"""Typed per-kind resource configurations.

Each resource kind has its own pydantic model carrying a ``kind`` literal, so a
declaration is a discriminated union rather than an untyped property bag.
These models only enforce shape and types; semantic constraints (ranges,
cross-field rules) are checked by the builders' ``validate``.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from stackplan.models.endpoints import EndpointProtocol


class ResourceConfig(BaseModel):
    """Base for every resource configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: str
    name: str


# ---------------------------------------------------------------------------
# Declared kinds
# ---------------------------------------------------------------------------


class NetworkConfig(ResourceConfig):
    """Virtual network spread over a number of availability zones."""

    kind: Literal["network"] = "network"
    cidr: str = "10.0.0.0/16"
    max_azs: int = 3
    nat_gateways: int | None = None  # None means one per AZ


class ClusterConfig(ResourceConfig):
    """Container cluster placed in a network."""

    kind: Literal["cluster"] = "cluster"
    network: str
    container_insights: bool = True


class CacheConfig(ResourceConfig):
    """Managed single-node cache cluster."""

    kind: Literal["cache"] = "cache"
    network: str
    engine: str = "redis"
    node_type: str = "cache.t2.micro"
    num_nodes: int = 1
    port: int = 6379
    database: int = 0
    auto_minor_version_upgrade: bool = True


class NamespaceConfig(ResourceConfig):
    """Private DNS zone used for service discovery."""

    kind: Literal["namespace"] = "namespace"
    zone_name: str
    network: str


class HealthCheck(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = "/"
    healthy_http_codes: str = "200"
    unhealthy_threshold: int = 2
    timeout_seconds: int = 5


class Sidecar(BaseModel):
    """Extra container running next to the service's main container."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    image: str
    port: int | None = None
    protocol: Literal["tcp", "udp"] = "tcp"


class Discovery(BaseModel):
    """DNS registration of a service inside a namespace."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    namespace: str
    name: str


class Link(BaseModel):
    """A runtime endpoint the service receives through its environment."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    target: str
    protocol: EndpointProtocol = EndpointProtocol.DISCOVERY_DNS
    env: str | None = None  # defaults to <LABEL>_ENDPOINT


class ServiceConfig(ResourceConfig):
    """Container service, optionally behind a load balancer."""

    kind: Literal["service"] = "service"
    cluster: str
    network: str | None = None  # defaults to the cluster's network
    image: str
    cpu: int = 256
    memory_mib: int = 512
    container_port: int = 80
    desired_count: int = 1
    load_balanced: bool = True
    health_check: HealthCheck = Field(default_factory=HealthCheck)
    discovery: Discovery | None = None
    cache: str | None = None
    links: tuple[Link, ...] = ()
    environment: dict[str, str] = Field(default_factory=dict)
    sidecars: tuple[Sidecar, ...] = ()
    managed_policies: tuple[str, ...] = ()


class StepAdjustment(BaseModel):
    """One row of a step-scaling table.

    Covers metric values in ``[lower_bound, upper_bound)``; a missing bound is
    unbounded on that side.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    lower_bound: float | None = None
    upper_bound: float | None = None
    delta: int


class AutoscalerConfig(ResourceConfig):
    """Capacity policy attached to exactly one service."""

    kind: Literal["autoscaler"] = "autoscaler"
    service: str
    min_capacity: int = 1
    max_capacity: int
    target_cpu_percent: float | None = None
    metric: str = "CPUUtilization"
    steps: tuple[StepAdjustment, ...] = ()


# ---------------------------------------------------------------------------
# Derived kinds (materialized by builders, never declared directly)
# ---------------------------------------------------------------------------


class CacheSubnetGroupConfig(ResourceConfig):
    kind: Literal["cache-subnet-group"] = "cache-subnet-group"
    network: str
    cache: str
    description: str


class DnsRecordConfig(ResourceConfig):
    kind: Literal["dns-record"] = "dns-record"
    namespace: str
    zone_name: str
    record_name: str
    target: str


class LoadBalancerConfig(ResourceConfig):
    kind: Literal["load-balancer"] = "load-balancer"
    service: str
    network: str
    listener_port: int = 80
    target_port: int
    health_check: HealthCheck = Field(default_factory=HealthCheck)


DeclaredResource = Annotated[
    NetworkConfig | ClusterConfig | CacheConfig | NamespaceConfig | ServiceConfig | AutoscalerConfig,
    Field(discriminator="kind"),
]


class Declaration(BaseModel):
    """A whole stack: a name plus its resources in declaration order."""

    model_config = ConfigDict(extra="forbid")

    stack: str = "default"
    resources: list[DeclaredResource] = Field(default_factory=list)
