"""Request/response schemas for the REST API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ViolationModel(BaseModel):
    resource: str
    field: str
    reason: str


class ErrorResponse(BaseModel):
    """Envelope for every non-2xx response."""

    error: str
    detail: str
    violations: list[ViolationModel] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


class OperationModel(BaseModel):
    index: int
    name: str
    kind: str
    operation: str
    dependencies: list[str] = Field(default_factory=list)
    payload: dict[str, Any] | None = None


class PlanResponse(BaseModel):
    stack: str
    operations: list[OperationModel]
    orphaned: list[str] = Field(default_factory=list)


class EndpointsResponse(BaseModel):
    stack: str
    environments: dict[str, dict[str, str]]
