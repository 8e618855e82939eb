"""Plan emission: dependency-ordered provisioning operations.

Kahn's algorithm over the topology, always taking the ready node with the
smallest name so the same topology yields the same plan.  The emitted plan is
then checked: every dependency must come earlier in the sequence or already
be applied.
"""

from __future__ import annotations

import heapq

import structlog

from stackplan.errors import CycleDetectedError, PlanIntegrityError, UnknownNodeError
from stackplan.graph.models import ResourceNode
from stackplan.graph.topology import Topology
from stackplan.models.plan import OperationKind, Plan, ProvisioningOperation
from stackplan.observability.metrics import plan_operations_total, plans_emitted_total
from stackplan.plan.state import AppliedState

_log = structlog.get_logger(component="plan.emitter")


def topological_order(topology: Topology) -> list[str]:
    """Return node names with every dependency before its dependents.

    Raises CycleDetectedError if any node cannot be ordered.
    """
    in_degree: dict[str, int] = {}
    for node in topology.nodes():
        for dep in node.dependencies:
            if dep not in topology:
                raise UnknownNodeError(dep, referenced_by=node.name)
        in_degree[node.name] = len(node.dependencies)

    ready = [name for name, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)
    order: list[str] = []
    while ready:
        name = heapq.heappop(ready)
        order.append(name)
        for dependent in topology.get(name).dependents:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, dependent)

    if len(order) != len(in_degree):
        remaining = sorted(name for name, degree in in_degree.items() if degree > 0)
        raise CycleDetectedError(remaining)
    return order


class PlanEmitter:
    """Turns a topology (and optionally a previously applied state) into a Plan."""

    def emit(self, topology: Topology, stack: str = "default", state: AppliedState | None = None) -> Plan:
        order = topological_order(topology)

        operations: list[ProvisioningOperation] = []
        for name in order:
            node = topology.get(name)
            kind = self._operation_for(node, state)
            if kind is None:
                continue
            operations.append(
                ProvisioningOperation(
                    index=len(operations),
                    name=node.name,
                    resource_kind=node.kind.value,
                    operation=kind,
                    dependencies=tuple(node.dependencies),
                    payload=node.payload,
                    fingerprint=node.fingerprint(),
                )
            )

        orphaned: list[str] = []
        if state is not None:
            orphaned = sorted(name for name in state.resources if name not in topology)

        plan = Plan(stack=stack, operations=operations, orphaned=orphaned)
        verify_plan(plan, state)

        plans_emitted_total.inc()
        for op in operations:
            plan_operations_total.labels(operation=op.operation.value).inc()
        _log.info(
            "plan_emitted",
            stack=stack,
            operations=len(operations),
            nodes=len(topology),
            orphaned=len(orphaned),
            incremental=state is not None,
        )
        return plan

    @staticmethod
    def _operation_for(node: ResourceNode, state: AppliedState | None) -> OperationKind | None:
        if state is None:
            return OperationKind.CREATE
        applied = state.resources.get(node.name)
        if applied is None:
            return OperationKind.CREATE
        if applied.fingerprint != node.fingerprint():
            return OperationKind.UPDATE
        if set(applied.dependencies) != set(node.dependencies):
            return OperationKind.UPDATE_DEPENDENCY
        return None


def verify_plan(plan: Plan, state: AppliedState | None = None) -> None:
    """Check that every dependency is planned earlier or already applied.

    Raises PlanIntegrityError on the first violation.
    """
    applied = state.resources if state is not None else {}
    planned = {op.name for op in plan.operations}
    seen: set[str] = set()
    for expected, op in enumerate(plan.operations):
        if op.index != expected:
            raise PlanIntegrityError(f"Operation '{op.name}' has index {op.index}, expected {expected}")
        for dep in op.dependencies:
            if dep in seen or (dep not in planned and dep in applied):
                continue
            raise PlanIntegrityError(f"Operation {op.index} ('{op.name}') runs before its dependency '{dep}'")
        seen.add(op.name)
