"""Provisioning plans: emission, execution, applied state and rendering.

Submodules:
    emitter   -- Dependency-ordered operations with an integrity check.
    executor  -- Wave-by-wave submission to a backend, halting on failure.
    state     -- JSON applied-state file for incremental plans.
    render    -- Text/JSON/YAML output for the CLI and API.
"""

from stackplan.plan.emitter import PlanEmitter, topological_order, verify_plan
from stackplan.plan.executor import PlanExecutor, plan_waves
from stackplan.plan.state import AppliedState, load_state, save_state

__all__ = [
    "AppliedState",
    "PlanEmitter",
    "PlanExecutor",
    "load_state",
    "plan_waves",
    "save_state",
    "topological_order",
    "verify_plan",
]
