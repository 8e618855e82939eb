"""Endpoint resolution for producer resources.

Turns ``(producer, protocol)`` into an EndpointDescriptor using only what the
topology declares.  No network calls; the same inputs always give the same
descriptor, and successful resolutions are cached for the resolver's lifetime.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from stackplan.errors import UnsupportedProtocolError
from stackplan.graph.models import ResourceKind, ResourceNode
from stackplan.graph.topology import Topology
from stackplan.models.endpoints import EndpointDescriptor, EndpointProtocol

_log = structlog.get_logger(component="endpoints.resolver")

_Handler = Callable[["EndpointResolver", ResourceNode], EndpointDescriptor]


class EndpointResolver:
    """Resolves and caches endpoint descriptors for one topology build."""

    def __init__(self, topology: Topology) -> None:
        self._topology = topology
        self._cache: dict[tuple[str, EndpointProtocol], EndpointDescriptor] = {}

    @property
    def topology(self) -> Topology:
        return self._topology

    def resolve(self, producer: str, protocol: EndpointProtocol | str) -> EndpointDescriptor:
        """Return the descriptor ``producer`` offers for ``protocol``.

        Raises:
            UnknownNodeError:         producer is not in the topology.
            UnsupportedProtocolError: producer's kind (or its current wiring)
                                      does not offer the protocol.
        """
        node = self._topology.get(producer)
        try:
            proto = EndpointProtocol(protocol)
        except ValueError:
            raise UnsupportedProtocolError(producer, node.kind.value, str(protocol)) from None

        key = (producer, proto)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        handler = _HANDLERS.get((node.kind, proto))
        if handler is None:
            raise UnsupportedProtocolError(producer, node.kind.value, proto.value)

        descriptor = handler(self, node)
        self._cache[key] = descriptor
        _log.debug("endpoint_resolved", producer=producer, protocol=proto.value, address=descriptor.address)
        return descriptor

    # ------------------------------------------------------------------
    # Per-kind handlers
    # ------------------------------------------------------------------

    def _cache_endpoint(self, node: ResourceNode) -> EndpointDescriptor:
        cfg = node.config
        return EndpointDescriptor(
            producer=node.name,
            protocol=EndpointProtocol.CACHE,
            address=f"{cfg.engine}://${{{node.name}.address}}:{cfg.port}/{cfg.database}",
            port=cfg.port,
        )

    def _load_balancer_http(self, node: ResourceNode) -> EndpointDescriptor:
        return EndpointDescriptor(
            producer=node.name,
            protocol=EndpointProtocol.HTTP,
            address=f"http://${{{node.name}.dns_name}}",
            port=node.config.listener_port,
        )

    def _service_http(self, node: ResourceNode) -> EndpointDescriptor:
        # Only the service's own balancer; linked services' balancers are dependencies too
        balancers = [
            dep
            for dep in node.dependencies
            if self._topology.get(dep).kind == ResourceKind.LOAD_BALANCER
            and self._topology.get(dep).config.service == node.name
        ]
        if not balancers:
            raise UnsupportedProtocolError(
                node.name, node.kind.value, EndpointProtocol.HTTP.value, "service is not load balanced"
            )
        lb = self.resolve(balancers[0], EndpointProtocol.HTTP)
        return EndpointDescriptor(
            producer=node.name,
            protocol=EndpointProtocol.HTTP,
            address=lb.address,
            port=lb.port,
            requires=(lb.producer,),
        )

    def _service_discovery(self, node: ResourceNode) -> EndpointDescriptor:
        records = self._topology.dependents_of(node.name, kind=ResourceKind.DNS_RECORD)
        if not records:
            raise UnsupportedProtocolError(
                node.name,
                node.kind.value,
                EndpointProtocol.DISCOVERY_DNS.value,
                "service is not registered in any namespace",
            )
        record = records[0]
        return EndpointDescriptor(
            producer=node.name,
            protocol=EndpointProtocol.DISCOVERY_DNS,
            address=record.name,
            requires=(record.name,),
        )

    def _namespace_discovery(self, node: ResourceNode) -> EndpointDescriptor:
        return EndpointDescriptor(
            producer=node.name,
            protocol=EndpointProtocol.DISCOVERY_DNS,
            address=node.config.zone_name.lower(),
        )

    def _record_discovery(self, node: ResourceNode) -> EndpointDescriptor:
        return EndpointDescriptor(
            producer=node.name,
            protocol=EndpointProtocol.DISCOVERY_DNS,
            address=node.name,
        )


_HANDLERS: dict[tuple[ResourceKind, EndpointProtocol], _Handler] = {
    (ResourceKind.CACHE, EndpointProtocol.CACHE): EndpointResolver._cache_endpoint,
    (ResourceKind.LOAD_BALANCER, EndpointProtocol.HTTP): EndpointResolver._load_balancer_http,
    (ResourceKind.SERVICE, EndpointProtocol.HTTP): EndpointResolver._service_http,
    (ResourceKind.SERVICE, EndpointProtocol.DISCOVERY_DNS): EndpointResolver._service_discovery,
    (ResourceKind.NAMESPACE, EndpointProtocol.DISCOVERY_DNS): EndpointResolver._namespace_discovery,
    (ResourceKind.DNS_RECORD, EndpointProtocol.DISCOVERY_DNS): EndpointResolver._record_discovery,
}
