"""Prometheus counters for planning and apply activity."""

from __future__ import annotations

from prometheus_client import Counter

nodes_materialized_total = Counter(
    "stackplan_nodes_materialized_total",
    "Resource nodes added to a topology by builders",
    ["kind"],
)

plans_emitted_total = Counter(
    "stackplan_plans_emitted_total",
    "Provisioning plans emitted",
)

plan_operations_total = Counter(
    "stackplan_plan_operations_total",
    "Operations emitted into plans",
    ["operation"],
)

backend_operations_total = Counter(
    "stackplan_backend_operations_total",
    "Operations reported back by a provisioning backend",
    ["outcome"],
)

validation_failures_total = Counter(
    "stackplan_validation_failures_total",
    "Declarations rejected before any backend call",
    ["error"],
)
