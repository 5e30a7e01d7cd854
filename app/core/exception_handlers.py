"""JSON error responses for the task tracker API.

Every error body has the shape {"error": CODE, "message": ..., "details"?: ...,
"trace_id"?: ...}. trace_id is the request id set by RequestContextMiddleware,
so a client can quote it when reporting a failure that was also logged and
audited under that id.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.domain.exceptions import TaskTrackerException

logger = logging.getLogger(__name__)

# Codes not listed fall back to 400
_STATUS_BY_CODE: dict[str, int] = {
    "RESOURCE_NOT_FOUND": 404,
    "VALIDATION_ERROR": 400,
    "PERMISSION_DENIED": 403,
    "BUSINESS_RULE_VIOLATION": 409,
    "PERSISTENCE_ERROR": 500,
}


def _error_response(request: Request, status_code: int, body: dict[str, Any]) -> JSONResponse:
    trace_id = getattr(request.state, "request_id", None)
    if trace_id:
        body["trace_id"] = trace_id
    return JSONResponse(status_code=status_code, content=body)


def _handle_tracker_error(request: Request, exc: TaskTrackerException) -> JSONResponse:
    status_code = _STATUS_BY_CODE.get(exc.error_code, 400)
    if status_code >= 500:
        logger.error("%s on %s %s", exc.error_code, request.method, request.url.path)
    else:
        logger.info("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc)
    return _error_response(request, status_code, exc.to_dict())


def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(
        request,
        422,
        {
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": exc.errors(),
        },
    )


def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(
        request, exc.status_code, {"error": "HTTP_ERROR", "message": exc.detail}
    )


def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    """500 for anything unhandled; the exception text is exposed only in debug mode."""
    logger.exception("Unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path)
    message = str(exc) if get_settings().debug else "Internal server error"
    return _error_response(request, 500, {"error": "INTERNAL_ERROR", "message": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers above on app (TaskTrackerException covers all domain errors)."""
    app.add_exception_handler(TaskTrackerException, _handle_tracker_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(Exception, _handle_unexpected)
