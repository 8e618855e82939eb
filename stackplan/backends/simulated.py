"""In-memory provisioning backend for dry runs and tests."""

from __future__ import annotations

from collections.abc import Iterable
from hashlib import sha1

import structlog

from stackplan.backends.base import ProvisioningBackend
from stackplan.models.plan import OperationResult, ProvisioningOperation

_log = structlog.get_logger(component="backends.simulated")


class SimulatedBackend(ProvisioningBackend):
    """Pretends to provision resources.

    Assigns deterministic identifiers, refuses any operation whose
    dependencies it has not applied, and fails the names in ``fail_on``.

    Args:
        fail_on:         Logical names whose operations should fail.
        already_applied: Names treated as provisioned by an earlier run.
    """

    def __init__(self, fail_on: Iterable[str] = (), already_applied: Iterable[str] = ()) -> None:
        self._fail_on = set(fail_on)
        self.applied: dict[str, str] = {name: self._build_id("existing", name) for name in already_applied}
        self.batches: list[list[ProvisioningOperation]] = []

    @property
    def name(self) -> str:
        return "simulated"

    def apply(self, ops: list[ProvisioningOperation]) -> list[OperationResult]:
        self.batches.append(list(ops))
        # Operations within one call are independent; check against state before the call
        applied_before = set(self.applied)
        results = []
        for op in ops:
            missing = [dep for dep in op.dependencies if dep not in applied_before]
            if missing:
                results.append(
                    OperationResult(index=op.index, success=False, error=f"dependencies not applied: {', '.join(missing)}")
                )
                continue
            if op.name in self._fail_on:
                results.append(OperationResult(index=op.index, success=False, error=f"simulated failure for '{op.name}'"))
                continue
            resource_id = self.applied.get(op.name) or self._build_id(op.resource_kind, op.name)
            self.applied[op.name] = resource_id
            results.append(OperationResult(index=op.index, success=True, resource_id=resource_id))
            _log.debug("operation_applied", index=op.index, name=op.name, operation=op.operation.value)
        return results

    @staticmethod
    def _build_id(prefix: str, signature: str) -> str:
        digest = sha1(signature.encode("utf-8")).hexdigest()[:12]
        return f"sim-{prefix}-{digest}"
