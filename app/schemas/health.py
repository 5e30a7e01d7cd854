"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")


class ReadinessResponse(BaseModel):
    """Response for GET /health/ready when ready."""

    status: str = Field(default="ok", description="Readiness status")
    progress_queue_depth: int = Field(
        default=0, description="Progress signals waiting to be processed"
    )
    progress_signals_dropped: int = Field(
        default=0, description="Signals dropped because the queue was full"
    )


class ReadinessErrorResponse(BaseModel):
    """Response for GET /health/ready when a dependency is not ready (503)."""

    status: str = Field(default="not_ready", description="Readiness status")
    message: str = Field(..., description="Reason (e.g. database unreachable)")
