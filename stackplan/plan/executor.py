"""Plan execution against a provisioning backend.

The plan is cut into waves: an operation's wave is one past the highest wave
of the dependencies it shares with the plan.  Each wave is one backend call,
so a backend may run a wave concurrently while never starting an operation
before its dependencies are applied.  Execution stops at the first failure;
later waves are never submitted.
"""

from __future__ import annotations

import structlog

from stackplan.backends.base import ProvisioningBackend
from stackplan.errors import BackendFailureError
from stackplan.models.plan import ApplyReport, OperationResult, Plan, ProvisioningOperation
from stackplan.observability.metrics import backend_operations_total
from stackplan.plan.state import AppliedState

_log = structlog.get_logger(component="plan.executor")


def plan_waves(plan: Plan) -> list[list[ProvisioningOperation]]:
    """Group operations into dependency waves, keeping plan order inside each wave."""
    wave_of: dict[str, int] = {}
    waves: list[list[ProvisioningOperation]] = []
    for op in plan.operations:
        wave = max((wave_of[dep] + 1 for dep in op.dependencies if dep in wave_of), default=0)
        wave_of[op.name] = wave
        while len(waves) <= wave:
            waves.append([])
        waves[wave].append(op)
    return waves


class PlanExecutor:
    """Submits a plan wave by wave and records successes into an applied state."""

    def __init__(self, backend: ProvisioningBackend, state: AppliedState | None = None) -> None:
        self._backend = backend
        self.state = state if state is not None else AppliedState()

    def execute(self, plan: Plan) -> ApplyReport:
        report = ApplyReport()
        self.state.stack = plan.stack
        waves = plan_waves(plan)

        for number, wave in enumerate(waves):
            _log.info(
                "wave_submitted",
                backend=self._backend.name,
                wave=number,
                operations=[op.index for op in wave],
            )
            results, raised_at = self._submit(wave)
            report.waves_submitted += 1

            for op in wave:
                result = results[op.index]
                report.results.append(result)
                if result.success:
                    backend_operations_total.labels(outcome="success").inc()
                    self.state.record(op, result.resource_id)
                    continue
                backend_operations_total.labels(outcome="failure").inc()
                if report.failed_index is None:
                    report.failed_index = op.index
                    report.error = result.error

            if raised_at is not None:
                report.failed_index = raised_at
                report.error = results[raised_at].error

            if report.failed_index is not None:
                report.skipped = [op for later in waves[number + 1 :] for op in later]
                _log.error(
                    "apply_halted",
                    failed_index=report.failed_index,
                    error=report.error,
                    skipped=len(report.skipped),
                )
                return report

        _log.info("apply_complete", operations=len(report.results), waves=report.waves_submitted)
        return report

    def _submit(self, wave: list[ProvisioningOperation]) -> tuple[dict[int, OperationResult], int | None]:
        """Apply one wave; every operation in it gets exactly one result.

        The second element is the failing index when the backend raised
        instead of returning results.
        """
        indices = {op.index for op in wave}
        try:
            returned = self._backend.apply(wave)
        except BackendFailureError as exc:
            failed = exc.index if exc.index in indices else wave[0].index
            _log.warning("backend_failure", backend=self._backend.name, index=failed, error=str(exc))
            results = {
                op.index: OperationResult(
                    index=op.index,
                    success=False,
                    error=str(exc) if op.index == failed else "not confirmed after backend failure",
                )
                for op in wave
            }
            return results, failed

        results = {r.index: r for r in returned if r.index in indices}
        for op in wave:
            if op.index not in results:
                results[op.index] = OperationResult(index=op.index, success=False, error="backend returned no result")
        return results, None
