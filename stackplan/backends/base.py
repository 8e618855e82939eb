"""Provisioning backend interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from stackplan.models.plan import OperationResult, ProvisioningOperation


class ProvisioningBackend(ABC):
    """Abstract base class for everything that applies provisioning operations.

    ``apply`` receives operations whose dependencies have all been applied by
    earlier calls.  It may run them concurrently.  It returns one result per
    operation, or raises BackendFailureError when it cannot report results.
    Retrying is the backend's own business.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier used in logs."""

    @abstractmethod
    def apply(self, ops: list[ProvisioningOperation]) -> list[OperationResult]:
        """Apply ``ops`` and return their results."""
