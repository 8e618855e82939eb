"""Error hierarchy for stackplan.

Every error raised while building a topology or emitting a plan derives from
``StackplanError``.  ``is_validation`` separates declaration/config mistakes
(caught before any backend call, CLI exit code 2) from internal failures.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Violation:
    """A single violated constraint on a resource configuration."""

    resource: str
    field: str  # Dot-path like "health_check.timeout_seconds"
    reason: str

    def __str__(self) -> str:
        location = f"{self.resource}.{self.field}" if self.field else self.resource
        return f"{location}: {self.reason}"


class StackplanError(Exception):
    """Base class for all stackplan errors."""

    code = "STACKPLAN_ERROR"
    is_validation = False


class DuplicateNameError(StackplanError):
    """Raised when a node name is already present in the topology."""

    code = "DUPLICATE_NAME"
    is_validation = True

    def __init__(self, name: str) -> None:
        super().__init__(f"Resource '{name}' is already declared")
        self.name = name


class UnknownNodeError(StackplanError):
    """Raised when a reference names a node that is not in the topology."""

    code = "UNKNOWN_NODE"
    is_validation = True

    def __init__(self, name: str, referenced_by: str | None = None) -> None:
        if referenced_by:
            message = f"Resource '{referenced_by}' references unknown resource '{name}'"
        else:
            message = f"Unknown resource '{name}'"
        super().__init__(message)
        self.name = name
        self.referenced_by = referenced_by


class CycleDetectedError(StackplanError):
    """Raised when a dependency edge would close a cycle."""

    code = "CYCLE_DETECTED"
    is_validation = True

    def __init__(self, cycle: list[str]) -> None:
        super().__init__("Dependency cycle: " + " -> ".join(cycle))
        self.cycle = cycle


class InvalidConfigError(StackplanError):
    """Raised with every violated constraint found on one or more resources."""

    code = "INVALID_CONFIG"
    is_validation = True

    def __init__(self, violations: list[Violation]) -> None:
        if not violations:
            raise ValueError("InvalidConfigError requires at least one violation")
        lines = "; ".join(str(v) for v in violations)
        super().__init__(f"{len(violations)} invalid setting(s): {lines}")
        self.violations = list(violations)


class UnsupportedProtocolError(StackplanError):
    """Raised when a producer cannot offer an endpoint for the requested protocol."""

    code = "UNSUPPORTED_PROTOCOL"
    is_validation = True

    def __init__(self, producer: str, kind: str, protocol: str, detail: str = "") -> None:
        message = f"Resource '{producer}' ({kind}) does not offer a '{protocol}' endpoint"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.producer = producer
        self.kind = kind
        self.protocol = protocol


class BackendFailureError(StackplanError):
    """Raised by a provisioning backend when an operation could not be applied.

    The only retryable kind; retry policy belongs to the backend itself.
    """

    code = "BACKEND_FAILURE"

    def __init__(self, message: str, index: int | None = None) -> None:
        super().__init__(message)
        self.index = index


class PlanIntegrityError(StackplanError):
    """Raised when an emitted plan fails its own ordering check."""

    code = "PLAN_INTEGRITY"
