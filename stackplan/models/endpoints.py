"""Endpoint descriptor data structures."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

_PLACEHOLDER = re.compile(r"\$\{([A-Za-z0-9._-]+)\}")


class EndpointProtocol(StrEnum):
    """Protocols a producer resource can expose to its consumers."""

    CACHE = "cache"
    HTTP = "http"
    DISCOVERY_DNS = "discovery-dns"


@dataclass(frozen=True)
class EndpointDescriptor:
    """Resolved, protocol-specific address for a producer resource.

    ``address`` may contain ``${<node>.<attribute>}`` placeholders for values
    only the provisioning backend knows (a cache's primary address, a load
    balancer's DNS name).  ``requires`` lists nodes, besides the producer,
    that a consumer must depend on to use this endpoint.
    """

    producer: str
    protocol: EndpointProtocol
    address: str
    port: int | None = None
    requires: tuple[str, ...] = ()

    @property
    def placeholders(self) -> tuple[str, ...]:
        """Backend attributes referenced by the address, e.g. ``("redis.address",)``."""
        return tuple(_PLACEHOLDER.findall(self.address))
