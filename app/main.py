"""FastAPI application entry point for the task tracker.

create_app() wires the lifespan (progress workers, tables, tracing), the
exception handlers, the request context middleware and the v1 router.
Settings are read inside create_app() so tests can change the environment
and clear the get_settings cache before building an app.

Run with: uvicorn app.main:app
"""

from fastapi import FastAPI

from app.api.v1.router import api_router
from app.core.config import get_settings
from app.core.exception_handlers import register_exception_handlers
from app.core.lifespan import create_lifespan
from app.middleware import RequestContextMiddleware
from app.shared.telemetry.telemetry import instrument_app


def create_app() -> FastAPI:
    """Build the FastAPI application from the current settings."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    register_exception_handlers(app)

    app.add_middleware(
        RequestContextMiddleware,
        header_name=settings.request_id_header,
        trust_forwarded_for=settings.trust_forwarded_for,
    )

    if settings.telemetry_enabled:
        instrument_app(app)

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()
