"""Provisioning plan and apply result data structures."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class OperationKind(StrEnum):
    """What a backend is asked to do with a resource."""

    CREATE = "create"
    UPDATE = "update"
    UPDATE_DEPENDENCY = "update-dependency"


@dataclass(frozen=True)
class ProvisioningOperation:
    """One ordered unit of work.  Produced only by the plan emitter."""

    index: int
    name: str
    resource_kind: str
    operation: OperationKind
    dependencies: tuple[str, ...] = ()
    payload: dict[str, Any] = field(default_factory=dict, compare=False)
    fingerprint: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "name": self.name,
            "kind": self.resource_kind,
            "operation": self.operation.value,
            "dependencies": list(self.dependencies),
            "payload": self.payload,
        }


@dataclass
class Plan:
    """Ordered operations for one stack."""

    stack: str
    operations: list[ProvisioningOperation] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)  # applied earlier, no longer declared

    def __iter__(self) -> Iterator[ProvisioningOperation]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def index_of(self, name: str) -> int | None:
        for op in self.operations:
            if op.name == name:
                return op.index
        return None


@dataclass(frozen=True)
class OperationResult:
    """Backend outcome for a single operation."""

    index: int
    success: bool
    resource_id: str | None = None  # opaque backend identifier, set on success
    error: str | None = None


@dataclass
class ApplyReport:
    """Outcome of submitting a plan to a backend."""

    results: list[OperationResult] = field(default_factory=list)
    failed_index: int | None = None
    error: str | None = None
    skipped: list[ProvisioningOperation] = field(default_factory=list)  # never submitted
    waves_submitted: int = 0

    @property
    def succeeded(self) -> bool:
        return self.failed_index is None
