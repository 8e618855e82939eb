"""Tests for PlanExecutor: waves, halting on failure and applied-state updates."""

from __future__ import annotations

from unittest.mock import MagicMock

from stackplan.backends import SimulatedBackend
from stackplan.backends.base import ProvisioningBackend
from stackplan.errors import BackendFailureError
from stackplan.models.plan import OperationKind, OperationResult, Plan, ProvisioningOperation
from stackplan.plan.executor import PlanExecutor, plan_waves
from stackplan.plan.state import AppliedState

# ---------------------------------------------------------------------------
# Helper factories
# ---------------------------------------------------------------------------


def _op(index: int, name: str, dependencies: tuple[str, ...] = ()) -> ProvisioningOperation:
    return ProvisioningOperation(
        index=index,
        name=name,
        resource_kind="network",
        operation=OperationKind.CREATE,
        dependencies=dependencies,
        fingerprint=f"fp-{name}",
    )


def _make_plan() -> Plan:
    """net -> (lb, zone) -> svc -> scaler"""
    return Plan(
        stack="exec",
        operations=[
            _op(0, "net"),
            _op(1, "lb", ("net",)),
            _op(2, "zone", ("net",)),
            _op(3, "svc", ("lb", "net")),
            _op(4, "scaler", ("svc",)),
        ],
    )


def _make_backend(side_effect: object) -> MagicMock:
    backend = MagicMock(spec=ProvisioningBackend)
    backend.name = "mock"
    backend.apply.side_effect = side_effect
    return backend


# ---------------------------------------------------------------------------
# Waves
# ---------------------------------------------------------------------------


class TestPlanWaves:
    def test_waves_follow_dependencies(self) -> None:
        waves = plan_waves(_make_plan())
        assert [[op.name for op in wave] for wave in waves] == [["net"], ["lb", "zone"], ["svc"], ["scaler"]]

    def test_applied_dependencies_do_not_delay(self) -> None:
        plan = Plan(stack="s", operations=[_op(0, "svc", ("lb",)), _op(1, "other")])
        assert [[op.name for op in wave] for wave in plan_waves(plan)] == [["svc", "other"]]

    def test_empty_plan(self) -> None:
        assert plan_waves(Plan(stack="s")) == []


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class TestExecute:
    def test_successful_apply(self) -> None:
        backend = SimulatedBackend()
        executor = PlanExecutor(backend)
        report = executor.execute(_make_plan())
        assert report.succeeded
        assert report.waves_submitted == 4
        assert [r.index for r in report.results] == [0, 1, 2, 3, 4]
        assert report.skipped == []
        assert set(executor.state.resources) == {"net", "lb", "zone", "svc", "scaler"}
        assert executor.state.stack == "exec"
        assert executor.state.resources["svc"].dependencies == ["lb", "net"]
        assert executor.state.resources["svc"].resource_id == backend.applied["svc"]

    def test_halts_at_first_failure(self) -> None:
        backend = SimulatedBackend(fail_on=["lb"])
        executor = PlanExecutor(backend)
        report = executor.execute(_make_plan())
        assert not report.succeeded
        assert report.failed_index == 1
        assert "lb" in (report.error or "")
        assert [op.name for op in report.skipped] == ["svc", "scaler"]
        assert report.waves_submitted == 2
        # zone was in the same wave and succeeded
        assert set(executor.state.resources) == {"net", "zone"}
        assert "svc" not in {op.name for batch in backend.batches for op in batch}

    def test_backend_raising_marks_its_index(self) -> None:
        def _apply(ops: list[ProvisioningOperation]) -> list[OperationResult]:
            if len(ops) == 2:
                raise BackendFailureError("provisioner down", index=2)
            return [OperationResult(index=op.index, success=True, resource_id=op.name) for op in ops]

        executor = PlanExecutor(_make_backend(_apply))
        report = executor.execute(_make_plan())
        assert report.failed_index == 2
        assert report.error == "provisioner down"
        assert [r.success for r in report.results] == [True, False, False]
        assert [op.index for op in report.skipped] == [3, 4]
        assert set(executor.state.resources) == {"net"}

    def test_backend_raising_without_index(self) -> None:
        executor = PlanExecutor(_make_backend(BackendFailureError("boom")))
        report = executor.execute(_make_plan())
        assert report.failed_index == 0
        assert report.waves_submitted == 1
        assert len(report.skipped) == 4

    def test_missing_result_is_a_failure(self) -> None:
        executor = PlanExecutor(_make_backend(lambda ops: []))
        report = executor.execute(_make_plan())
        assert report.failed_index == 0
        assert report.error == "backend returned no result"

    def test_existing_state_is_extended(self) -> None:
        state = AppliedState(stack="exec")
        state.record(_op(0, "net"), "vpc-123")
        plan = Plan(stack="exec", operations=[_op(0, "lb", ("net",))])
        backend = SimulatedBackend(already_applied=state.resources)
        executor = PlanExecutor(backend, state)
        report = executor.execute(plan)
        assert report.succeeded
        assert executor.state is state
        assert state.resources["net"].resource_id == "vpc-123"
        assert "lb" in state.resources

    def test_empty_plan_submits_nothing(self) -> None:
        backend = _make_backend(lambda ops: [])
        report = PlanExecutor(backend).execute(Plan(stack="s"))
        assert report.succeeded
        assert report.waves_submitted == 0
        backend.apply.assert_not_called()
