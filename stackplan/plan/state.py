"""Applied-state file.

Records what a backend has successfully applied so a later plan only emits
operations for resources that are new or changed.  Stored as JSON.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path

import structlog

from stackplan.models.plan import ProvisioningOperation

_log = structlog.get_logger(component="plan.state")

STATE_VERSION = 1


@dataclass
class AppliedResource:
    kind: str
    fingerprint: str
    dependencies: list[str] = field(default_factory=list)
    resource_id: str | None = None


@dataclass
class AppliedState:
    """Resources a backend has applied, keyed by logical name."""

    stack: str = "default"
    resources: dict[str, AppliedResource] = field(default_factory=dict)

    def record(self, op: ProvisioningOperation, resource_id: str | None) -> None:
        previous = self.resources.get(op.name)
        self.resources[op.name] = AppliedResource(
            kind=op.resource_kind,
            fingerprint=op.fingerprint,
            dependencies=list(op.dependencies),
            resource_id=resource_id or (previous.resource_id if previous else None),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "version": STATE_VERSION,
            "stack": self.stack,
            "resources": {name: asdict(res) for name, res in self.resources.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> AppliedState:
        version = data.get("version", STATE_VERSION)
        if version != STATE_VERSION:
            raise ValueError(f"Unsupported state version: {version}")
        raw = data.get("resources") or {}
        if not isinstance(raw, dict):
            raise ValueError("State 'resources' must be a mapping")
        resources = {
            name: AppliedResource(
                kind=str(entry["kind"]),
                fingerprint=str(entry["fingerprint"]),
                dependencies=list(entry.get("dependencies", [])),
                resource_id=entry.get("resource_id"),
            )
            for name, entry in raw.items()
        }
        return cls(stack=str(data.get("stack", "default")), resources=resources)


def load_state(path: str | Path) -> AppliedState:
    """Load applied state from ``path``; a missing file is an empty state."""
    state_path = Path(path)
    if not state_path.exists():
        _log.debug("state_file_missing", path=str(state_path))
        return AppliedState()
    data = json.loads(state_path.read_text(encoding="utf-8"))
    state = AppliedState.from_dict(data)
    _log.debug("state_loaded", path=str(state_path), resources=len(state.resources))
    return state


def save_state(path: str | Path, state: AppliedState) -> None:
    state_path = Path(path)
    state_path.parent.mkdir(parents=True, exist_ok=True)
    state_path.write_text(json.dumps(state.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
    _log.info("state_saved", path=str(state_path), resources=len(state.resources))
