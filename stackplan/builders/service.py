"""Container service builder.

Materializes, in order: an optional load balancer, the service itself with
its endpoint-wired environment, and an optional DNS record in a namespace.
Every endpoint injected into the environment is also a dependency edge.
"""

from __future__ import annotations

import re

from stackplan.builders.base import ResourceBuilder, check_range, is_dns_label
from stackplan.builders.namespace import NamespaceBuilder
from stackplan.endpoints.resolver import EndpointResolver
from stackplan.errors import DuplicateNameError, InvalidConfigError, Violation
from stackplan.graph.models import ResourceKind, ResourceNode
from stackplan.graph.topology import Topology
from stackplan.models.endpoints import EndpointDescriptor, EndpointProtocol
from stackplan.models.resources import LoadBalancerConfig, ServiceConfig

# Environment key the cache endpoint is always injected under
CACHE_ENDPOINT_KEY = "REDIS_ENDPOINT"

# Valid task size combinations: cpu units -> allowed memory (MiB)
TASK_SIZES: dict[int, tuple[int, ...]] = {
    256: (512, 1024, 2048),
    512: tuple(range(1024, 4097, 1024)),
    1024: tuple(range(2048, 8193, 1024)),
    2048: tuple(range(4096, 16385, 1024)),
    4096: tuple(range(8192, 30721, 1024)),
}

_RE_ENV_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_RE_HTTP_CODES = re.compile(r"^\d{3}(-\d{3})?(,\d{3}(-\d{3})?)*$")


def load_balancer_name(service_name: str) -> str:
    return f"{service_name}-lb"


def default_env_key(descriptor: EndpointDescriptor) -> str:
    """``CATALOG_ENDPOINT`` for ``catalog.example.local``, ``REDIS_ENDPOINT`` for producer ``redis``."""
    if descriptor.protocol == EndpointProtocol.DISCOVERY_DNS:
        label = descriptor.address.split(".", 1)[0]
    else:
        label = descriptor.producer
    return re.sub(r"[^A-Za-z0-9]", "_", label).upper() + "_ENDPOINT"


class ServiceBuilder(ResourceBuilder):
    kind = ResourceKind.SERVICE
    config_type = ServiceConfig

    def __init__(self, resolver: EndpointResolver, namespaces: NamespaceBuilder | None = None) -> None:
        self._resolver = resolver
        self._namespaces = namespaces or NamespaceBuilder()

    def check(self, config: ServiceConfig) -> list[Violation]:  # type: ignore[override]
        violations: list[Violation] = []
        name = config.name

        if not config.cluster:
            violations.append(Violation(name, "cluster", "is required"))
        if not config.image:
            violations.append(Violation(name, "image", "is required"))

        allowed_memory = TASK_SIZES.get(config.cpu)
        if allowed_memory is None:
            violations.append(Violation(name, "cpu", f"must be one of {sorted(TASK_SIZES)}, got {config.cpu}"))
        elif config.memory_mib not in allowed_memory:
            violations.append(
                Violation(
                    name,
                    "memory_mib",
                    f"{config.memory_mib} MiB is not valid with {config.cpu} cpu units"
                    f" ({allowed_memory[0]}-{allowed_memory[-1]} MiB)",
                )
            )

        check_range(violations, name, "container_port", config.container_port, 1, 65535)
        check_range(violations, name, "desired_count", config.desired_count, 0)

        hc = config.health_check
        if not hc.path.startswith("/"):
            violations.append(Violation(name, "health_check.path", "must start with '/'"))
        if not _RE_HTTP_CODES.match(hc.healthy_http_codes):
            violations.append(
                Violation(name, "health_check.healthy_http_codes", f"'{hc.healthy_http_codes}' is not a code list")
            )
        check_range(violations, name, "health_check.unhealthy_threshold", hc.unhealthy_threshold, 2, 10)
        check_range(violations, name, "health_check.timeout_seconds", hc.timeout_seconds, 2, 120)

        if config.discovery is not None and not is_dns_label(config.discovery.name):
            violations.append(
                Violation(name, "discovery.name", f"'{config.discovery.name}' is not a valid DNS label")
            )

        seen_keys: set[str] = set()
        for key in config.environment:
            if not _RE_ENV_KEY.match(key):
                violations.append(Violation(name, f"environment.{key}", "is not a valid variable name"))
            seen_keys.add(key)
        if config.cache is not None and CACHE_ENDPOINT_KEY in seen_keys:
            violations.append(
                Violation(name, f"environment.{CACHE_ENDPOINT_KEY}", "is reserved for the cache endpoint")
            )

        for i, link in enumerate(config.links):
            if link.target == name:
                violations.append(Violation(name, f"links[{i}].target", "a service cannot link to itself"))
            if link.env is None:
                continue
            if not _RE_ENV_KEY.match(link.env):
                violations.append(Violation(name, f"links[{i}].env", f"'{link.env}' is not a valid variable name"))
            elif link.env in seen_keys or (config.cache is not None and link.env == CACHE_ENDPOINT_KEY):
                violations.append(Violation(name, f"links[{i}].env", f"'{link.env}' is set more than once"))
            seen_keys.add(link.env)

        sidecar_names = {name}
        for i, sidecar in enumerate(config.sidecars):
            if sidecar.name in sidecar_names:
                violations.append(Violation(name, f"sidecars[{i}].name", f"container '{sidecar.name}' already exists"))
            sidecar_names.add(sidecar.name)
            if sidecar.port is not None:
                check_range(violations, name, f"sidecars[{i}].port", sidecar.port, 1, 65535)

        return violations

    def materialize(self, topology: Topology, config: ServiceConfig) -> list[ResourceNode]:  # type: ignore[override]
        if self._resolver.topology is not topology:
            raise ValueError("ServiceBuilder resolver is bound to a different topology")

        cluster = self.reference(topology, config, "cluster", config.cluster, ResourceKind.CLUSTER)
        network = config.network or cluster.config.network
        self.reference(topology, config, "network", network, ResourceKind.NETWORK)

        lb_name = load_balancer_name(config.name)
        for name in (config.name, lb_name) if config.load_balanced else (config.name,):
            if name in topology:
                raise DuplicateNameError(name)

        if config.discovery is not None:
            self.reference(topology, config, "discovery.namespace", config.discovery.namespace, ResourceKind.NAMESPACE)
            self._namespaces.check_available(topology, config.discovery.namespace, config.discovery.name, config.name)

        environment, wired = self._wire_environment(config)

        created: list[ResourceNode] = []
        depends_on = [network, cluster.name]
        if config.load_balanced:
            lb = self.add_node(
                topology,
                LoadBalancerConfig(
                    name=lb_name,
                    service=config.name,
                    network=network,
                    target_port=config.container_port,
                    health_check=config.health_check,
                ),
                depends_on=[network],
            )
            created.append(lb)
            depends_on.append(lb.name)

        for dep in wired:
            if dep not in depends_on:
                depends_on.append(dep)

        resolved = config.model_copy(update={"network": network, "environment": environment})
        created.append(self.add_node(topology, resolved, depends_on=depends_on))

        if config.discovery is not None:
            created.append(
                self._namespaces.register(topology, config.discovery.namespace, config.discovery.name, config.name)
            )
        return created

    def _wire_environment(self, config: ServiceConfig) -> tuple[dict[str, str], list[str]]:
        """Resolve cache and link endpoints into environment entries.

        Returns the full environment and the nodes it makes the service depend on.
        """
        environment = dict(config.environment)
        wired: list[str] = []
        violations: list[Violation] = []

        def _inject(key: str, descriptor: EndpointDescriptor, field: str) -> None:
            if key in environment:
                violations.append(Violation(config.name, field, f"'{key}' is set more than once"))
                return
            environment[key] = descriptor.address
            for dep in (descriptor.producer, *descriptor.requires):
                if dep not in wired:
                    wired.append(dep)

        if config.cache is not None:
            descriptor = self._resolver.resolve(config.cache, EndpointProtocol.CACHE)
            _inject(CACHE_ENDPOINT_KEY, descriptor, "cache")

        for i, link in enumerate(config.links):
            descriptor = self._resolver.resolve(link.target, link.protocol)
            _inject(link.env or default_env_key(descriptor), descriptor, f"links[{i}]")

        if violations:
            raise InvalidConfigError(violations)
        return environment, wired
