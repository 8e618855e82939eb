"""FastAPI application factory for stackplan.

Usage::

    from stackplan.api.app import create_app

    app = create_app(config=config)

The factory is used by ``stackplan serve`` and by unit tests.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from stackplan.api.routes import router
from stackplan.api.schemas import ErrorResponse, ViolationModel
from stackplan.errors import InvalidConfigError, StackplanError
from stackplan.observability.metrics import validation_failures_total

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"


def create_app(config: Any = None) -> FastAPI:
    """Create and configure the stackplan FastAPI application.

    Args:
        config: StackplanConfig, kept on ``app.state`` for route handlers.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from stackplan import __version__

    app = FastAPI(
        title="stackplan",
        summary="Declarative stack planning API",
        version=__version__,
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
        openapi_url="/api/v1/openapi.json",
    )
    app.state.config = config

    app.include_router(router, prefix=_API_PREFIX)

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Requests whose body is not a JSON object never reach the planner."""
        errors = exc.errors()
        first_msg = str(errors[0].get("msg", "")) if errors else ""
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(error="INVALID_REQUEST", detail=first_msg).model_dump(),
        )

    @app.exception_handler(StackplanError)
    async def stackplan_exception_handler(
        request: Request,
        exc: StackplanError,
    ) -> JSONResponse:
        """Declaration problems are 422; anything else from the planner is a 500."""
        if not exc.is_validation:
            _log.error("planner_error", path=str(request.url.path), error=str(exc), code=exc.code)
            return JSONResponse(
                status_code=500,
                content=ErrorResponse(error=exc.code, detail="The plan could not be produced.").model_dump(),
            )

        validation_failures_total.labels(error=exc.code).inc()
        violations = []
        if isinstance(exc, InvalidConfigError):
            violations = [
                ViolationModel(resource=v.resource, field=v.field, reason=v.reason) for v in exc.violations
            ]
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(error=exc.code, detail=str(exc), violations=violations).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app
