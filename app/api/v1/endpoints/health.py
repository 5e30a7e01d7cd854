"""Health check endpoints: liveness and readiness probes."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.v1.dependencies import DbSession
from app.schemas.health import (
    HealthResponse,
    ReadinessErrorResponse,
    ReadinessResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_ready(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content=ReadinessErrorResponse(status="not_ready", message=message).model_dump(),
    )


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Not ready", "model": ReadinessErrorResponse}},
)
async def readiness_check(request: Request, db: DbSession) -> ReadinessResponse | JSONResponse:
    """Return 200 when the database answers and progress workers are running; 503 otherwise."""
    services = getattr(request.app.state, "services", None)
    if services is None or not services.channel.is_running:
        return _not_ready("Progress channel is not running")
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Readiness check: database unavailable: %s", e)
        return _not_ready("Database unavailable")
    return ReadinessResponse(
        progress_queue_depth=services.channel.pending_count,
        progress_signals_dropped=services.channel.dropped_count,
    )
