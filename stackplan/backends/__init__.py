"""Provisioning backends.

Exports:
    ProvisioningBackend -- Abstract base every backend implements.
    SimulatedBackend    -- In-memory backend with deterministic identifiers.
    HttpBackend         -- JSON-over-HTTP backend for a remote provisioner.
    build_backend       -- Factory used by the CLI.
"""

from __future__ import annotations

from collections.abc import Iterable

from stackplan.backends.base import ProvisioningBackend
from stackplan.backends.http import HttpBackend
from stackplan.backends.simulated import SimulatedBackend
from stackplan.models.config import BackendConfig

__all__ = [
    "HttpBackend",
    "ProvisioningBackend",
    "SimulatedBackend",
    "build_backend",
]


def build_backend(
    config: BackendConfig,
    fail_on: Iterable[str] = (),
    already_applied: Iterable[str] = (),
) -> ProvisioningBackend:
    """Build the backend selected by ``config.kind``."""
    if config.kind == "http":
        return HttpBackend(config.endpoint, timeout=float(config.timeout_seconds))
    if config.kind == "simulated":
        return SimulatedBackend(fail_on=fail_on, already_applied=already_applied)
    raise ValueError(f"Unknown backend kind: {config.kind}")
