"""REST routes: health, plan and endpoint wiring."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body

from stackplan import __version__
from stackplan.api.schemas import EndpointsResponse, HealthResponse, PlanResponse
from stackplan.declaration import build_stack, parse_declaration
from stackplan.plan.render import plan_to_dict

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(version=__version__)


@router.post("/plan", response_model=PlanResponse, response_model_exclude_none=True)
def plan(declaration: dict[str, Any] = Body(...), include_payload: bool = True) -> PlanResponse:
    """Dry-run a declaration and return its ordered operations."""
    stack = build_stack(parse_declaration(declaration))
    return PlanResponse.model_validate(plan_to_dict(stack.plan(), include_payload=include_payload))


@router.post("/endpoints", response_model=EndpointsResponse)
def endpoints(declaration: dict[str, Any] = Body(...)) -> EndpointsResponse:
    """Return the environment each service would receive."""
    stack = build_stack(parse_declaration(declaration))
    return EndpointsResponse(stack=stack.name, environments=stack.environments())
