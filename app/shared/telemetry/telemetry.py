"""OpenTelemetry setup for the task tracker (console, OTLP or no exporter).

The lifespan builds one TaskTrackerTelemetry from Settings when
TELEMETRY_ENABLED is set. Spans from @traced (progress recomputation, bulk
operations) and from the FastAPI and SQLAlchemy instrumentations then share
its TracerProvider.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Probes are polled constantly; tracing them only adds noise.
EXCLUDED_URLS = "/api/v1/health,/api/v1/health/ready"


def _build_exporter(settings: Settings) -> SpanExporter | None:
    if settings.telemetry_exporter == "none":
        return None
    if settings.telemetry_exporter == "otlp":
        endpoint = settings.telemetry_otlp_endpoint or ""
        return OTLPSpanExporter(endpoint=endpoint, insecure=endpoint.startswith("http://"))
    return ConsoleSpanExporter()


class TaskTrackerTelemetry:
    """Owns the process TracerProvider and the instrumentations attached to it."""

    def __init__(self, provider: TracerProvider) -> None:
        self.provider = provider
        self._instrumented_engine: AsyncEngine | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> TaskTrackerTelemetry:
        """Create the provider (sampled by TELEMETRY_SAMPLE_RATE) and install it globally."""
        resource = Resource.create(
            {
                SERVICE_NAME: settings.app_name,
                SERVICE_VERSION: settings.app_version,
                "deployment.environment": settings.telemetry_environment,
            }
        )
        provider = TracerProvider(
            resource=resource,
            sampler=ParentBased(TraceIdRatioBased(settings.telemetry_sample_rate)),
        )
        exporter = _build_exporter(settings)
        if exporter is not None:
            provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)
        logger.info(
            "Tracing enabled: exporter=%s sample_rate=%.2f",
            settings.telemetry_exporter,
            settings.telemetry_sample_rate,
        )
        return cls(provider)

    def instrument_engine(self, engine: AsyncEngine) -> None:
        """Trace SQL statements issued through engine."""
        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine, tracer_provider=self.provider)
        self._instrumented_engine = engine

    def shutdown(self) -> None:
        """Detach instrumentations and flush buffered spans."""
        if self._instrumented_engine is not None:
            SQLAlchemyInstrumentor().uninstrument()
            self._instrumented_engine = None
        self.provider.shutdown()


def instrument_app(app: FastAPI) -> None:
    """Trace HTTP requests except health probes.

    Must run before the app serves its first request (middleware cannot be
    added later); spans go to whichever provider is installed at startup.
    """
    FastAPIInstrumentor.instrument_app(app, excluded_urls=EXCLUDED_URLS)


_telemetry: TaskTrackerTelemetry | None = None


def get_telemetry() -> TaskTrackerTelemetry | None:
    """Return the telemetry installed at startup, if any."""
    return _telemetry


def set_telemetry(telemetry: TaskTrackerTelemetry | None) -> None:
    """Install (or clear) the process telemetry."""
    global _telemetry
    _telemetry = telemetry
