from __future__ import annotations

import logging
import math

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from subdivision_ai.resilience.errors import (
    GenerationFailedError,
    RateLimitExceededError,
    UnknownResourceError,
)


def _respond(request: Request, status_code: int, content: dict, headers: dict | None = None) -> JSONResponse:
    trace_id = getattr(request.state, "trace_id", None)
    content = {**content, "trace_id": trace_id}
    response = JSONResponse(status_code=status_code, content=content, headers=headers)
    if trace_id:
        response.headers["X-Trace-Id"] = trace_id
    return response


def register_exception_handlers(app) -> None:
    logger = logging.getLogger(__name__)

    @app.exception_handler(RequestValidationError)
    async def handle_validation(request: Request, exc: RequestValidationError):
        return _respond(request, 422, {"error": "validation_error", "details": exc.errors()})

    @app.exception_handler(UnknownResourceError)
    async def handle_unknown_resource(request: Request, exc: UnknownResourceError):
        return _respond(request, 404, {"error": exc.code, "message": str(exc)})

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limited(request: Request, exc: RateLimitExceededError):
        return _respond(
            request,
            429,
            {"error": exc.code, "message": str(exc), "resource": exc.resource, "wait_time_s": exc.wait_time_s},
            headers={"Retry-After": str(max(1, math.ceil(exc.wait_time_s)))},
        )

    @app.exception_handler(GenerationFailedError)
    async def handle_generation_failed(request: Request, exc: GenerationFailedError):
        # only the user-facing text leaves the process; the raw diagnostic was logged by the executor
        return _respond(
            request,
            502,
            {
                "error": exc.code,
                "message": str(exc),
                "code": exc.error.code,
                "suggested_action": exc.error.suggested_action,
                "attempts": exc.attempts,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unknown(request: Request, exc: Exception):
        trace_id = getattr(request.state, "trace_id", None)
        logger.exception("Unhandled error", extra={"trace_id": trace_id, "path": request.url.path})
        telemetry = getattr(request.app.state, "telemetry", None)
        if telemetry is not None:
            telemetry.error(trace_id, exc)
        return _respond(request, 500, {"error": "internal_error"})
