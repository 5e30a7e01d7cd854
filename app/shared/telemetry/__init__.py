"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from app.shared.telemetry.logging import TraceIdFilter, setup_logging
from app.shared.telemetry.tracing import add_span_attributes, get_trace_id, traced

__all__ = [
    "setup_logging",
    "TraceIdFilter",
    "traced",
    "add_span_attributes",
    "get_trace_id",
]
