"""Plan rendering for the CLI and API.

Pure formatting: no inference, no mutation of the plan.
"""

from __future__ import annotations

import json
from typing import Any

import yaml

from stackplan.models.plan import ApplyReport, Plan

FORMATS = ("text", "json", "yaml")


def plan_to_dict(plan: Plan, include_payload: bool = True) -> dict[str, Any]:
    operations = []
    for op in plan.operations:
        entry = op.to_dict()
        if not include_payload:
            entry.pop("payload")
        operations.append(entry)
    return {
        "stack": plan.stack,
        "operations": operations,
        "orphaned": list(plan.orphaned),
    }


def render_plan(plan: Plan, fmt: str = "text") -> str:
    """Render ``plan`` as ``text``, ``json`` or ``yaml``."""
    if fmt == "json":
        return json.dumps(plan_to_dict(plan), indent=2)
    if fmt == "yaml":
        return yaml.dump(plan_to_dict(plan), sort_keys=False, default_flow_style=False, allow_unicode=True)
    if fmt != "text":
        raise ValueError(f"Unknown format '{fmt}', expected one of {FORMATS}")
    return _render_text(plan)


def _render_text(plan: Plan) -> str:
    if not plan.operations:
        lines = [f"Stack '{plan.stack}': no changes."]
    else:
        lines = [f"Stack '{plan.stack}': {len(plan.operations)} operation(s)"]
        name_width = max(len(op.name) for op in plan.operations)
        for op in plan.operations:
            after = ", ".join(op.dependencies) if op.dependencies else "-"
            lines.append(
                f"  {op.index:>3}  {op.operation.value:<17}  {op.resource_kind:<18}  "
                f"{op.name:<{name_width}}  after: {after}"
            )
    for name in plan.orphaned:
        lines.append(f"  orphaned (not managed by this plan): {name}")
    return "\n".join(lines)


def render_report(report: ApplyReport) -> str:
    lines = []
    for result in report.results:
        if result.success:
            lines.append(f"  {result.index:>3}  ok      {result.resource_id or ''}")
        else:
            lines.append(f"  {result.index:>3}  FAILED  {result.error or ''}")
    for op in report.skipped:
        lines.append(f"  {op.index:>3}  skipped {op.name}")
    if report.succeeded:
        lines.append(f"Applied {len(report.results)} operation(s) in {report.waves_submitted} wave(s).")
    else:
        lines.append(f"Apply halted at operation {report.failed_index}: {report.error}")
    return "\n".join(lines)


def render_environment(environments: dict[str, dict[str, str]]) -> str:
    """Render the per-service environment wiring as YAML."""
    return yaml.dump(environments, sort_keys=False, default_flow_style=False, allow_unicode=True)
