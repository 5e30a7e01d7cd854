"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (logging, progress
channel workers, telemetry, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.core.composition import build_services
from app.core.config import get_settings
from app.infrastructure.persistence import database
from app.shared.telemetry.logging import setup_logging
from app.shared.telemetry.telemetry import (
    TaskTrackerTelemetry,
    get_telemetry,
    set_telemetry,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, table creation (if enabled), services + progress
    channel workers, telemetry (if enabled). Shutdown order: channel drain and
    stop, telemetry shutdown, SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    setup_logging()
    session_factory = database.get_session_factory()
    if settings.database_create_tables and database.engine is not None:
        await database.create_tables(database.engine)
    services = build_services(settings, session_factory)
    services.channel.start()
    app.state.services = services

    if settings.telemetry_enabled:
        telemetry = TaskTrackerTelemetry.from_settings(settings)
        if database.engine is not None:
            telemetry.instrument_engine(database.engine)
        set_telemetry(telemetry)

    logger.info("%s %s started", settings.app_name, settings.app_version)

    yield

    # ---- Shutdown ----
    await services.channel.stop(drain=True)
    app.state.services = None

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
        logger.info("Tracing shut down")

    await database.dispose_engine()
    logger.info("Database engine disposed")
