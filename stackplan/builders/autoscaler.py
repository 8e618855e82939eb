"""Autoscaling policy builder.

An autoscaler attaches to exactly one service and scales it by target
tracking on CPU, by a step table on a metric, or both.  A step covers
``[lower_bound, upper_bound)``; a missing bound is unbounded on that side.
Steps must be listed in ascending order and must not overlap.
"""

from __future__ import annotations

import math

import structlog

from stackplan.builders.base import ResourceBuilder, check_range
from stackplan.errors import InvalidConfigError, Violation
from stackplan.graph.models import ResourceKind, ResourceNode
from stackplan.graph.topology import Topology
from stackplan.models.resources import AutoscalerConfig, StepAdjustment

_log = structlog.get_logger(component="builders.autoscaler")


def _interval(step: StepAdjustment) -> tuple[float, float]:
    low = -math.inf if step.lower_bound is None else step.lower_bound
    high = math.inf if step.upper_bound is None else step.upper_bound
    return (low, high)


def _overlaps(a: tuple[float, float], b: tuple[float, float]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def step_violations(resource: str, steps: tuple[StepAdjustment, ...] | list[StepAdjustment]) -> list[Violation]:
    """Check a step table for empty intervals, zero deltas, ordering and overlaps."""
    violations: list[Violation] = []
    intervals = [_interval(step) for step in steps]

    for i, (step, (low, high)) in enumerate(zip(steps, intervals)):
        if step.delta == 0:
            violations.append(Violation(resource, f"steps[{i}].delta", "must not be zero"))
        if low >= high:
            violations.append(
                Violation(resource, f"steps[{i}]", f"lower_bound {step.lower_bound} must be below upper_bound {step.upper_bound}")
            )

    for i in range(1, len(intervals)):
        if intervals[i][0] < intervals[i - 1][0]:
            violations.append(Violation(resource, f"steps[{i}]", "steps must be listed in ascending order of bounds"))

    for i in range(len(intervals)):
        for j in range(i + 1, len(intervals)):
            if _overlaps(intervals[i], intervals[j]):
                violations.append(Violation(resource, f"steps[{j}]", f"overlaps steps[{i}]"))
    return violations


class AutoscalerBuilder(ResourceBuilder):
    kind = ResourceKind.AUTOSCALER
    config_type = AutoscalerConfig

    def check(self, config: AutoscalerConfig) -> list[Violation]:  # type: ignore[override]
        violations: list[Violation] = []
        name = config.name
        if not config.service:
            violations.append(Violation(name, "service", "is required"))
        check_range(violations, name, "min_capacity", config.min_capacity, 0)
        check_range(violations, name, "max_capacity", config.max_capacity, max(config.min_capacity, 1))
        if config.target_cpu_percent is None and not config.steps:
            violations.append(Violation(name, "target_cpu_percent", "either target_cpu_percent or steps is required"))
        if config.target_cpu_percent is not None:
            check_range(violations, name, "target_cpu_percent", config.target_cpu_percent, 1, 100)
        if config.steps and not config.metric:
            violations.append(Violation(name, "metric", "is required with steps"))
        violations.extend(step_violations(name, config.steps))
        return violations

    def materialize(self, topology: Topology, config: AutoscalerConfig) -> list[ResourceNode]:  # type: ignore[override]
        service = self.reference(topology, config, "service", config.service, ResourceKind.SERVICE)
        existing = topology.dependents_of(service.name, kind=ResourceKind.AUTOSCALER)
        if existing:
            raise InvalidConfigError(
                [Violation(config.name, "service", f"'{service.name}' is already scaled by '{existing[0].name}'")]
            )

        desired = service.config.desired_count
        if not config.min_capacity <= desired <= config.max_capacity:
            _log.warning(
                "desired_count_outside_capacity",
                service=service.name,
                desired_count=desired,
                min_capacity=config.min_capacity,
                max_capacity=config.max_capacity,
            )
        return [self.add_node(topology, config, depends_on=[service.name])]
