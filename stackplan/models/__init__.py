"""Core data structures for stackplan."""

from stackplan.models.config import StackplanConfig
from stackplan.models.endpoints import EndpointDescriptor, EndpointProtocol
from stackplan.models.plan import (
    ApplyReport,
    OperationKind,
    OperationResult,
    Plan,
    ProvisioningOperation,
)
from stackplan.models.resources import (
    AutoscalerConfig,
    CacheConfig,
    ClusterConfig,
    Declaration,
    NamespaceConfig,
    NetworkConfig,
    ResourceConfig,
    ServiceConfig,
)

__all__ = [
    "ApplyReport",
    "AutoscalerConfig",
    "CacheConfig",
    "ClusterConfig",
    "Declaration",
    "EndpointDescriptor",
    "EndpointProtocol",
    "NamespaceConfig",
    "NetworkConfig",
    "OperationKind",
    "OperationResult",
    "Plan",
    "ProvisioningOperation",
    "ResourceConfig",
    "ServiceConfig",
    "StackplanConfig",
]
