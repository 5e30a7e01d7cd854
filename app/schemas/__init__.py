"""API schemas (pydantic request/response models)."""

from app.schemas.health import HealthResponse, ReadinessErrorResponse, ReadinessResponse

__all__ = ["HealthResponse", "ReadinessErrorResponse", "ReadinessResponse"]
