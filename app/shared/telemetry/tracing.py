"""Tracing helpers: @traced spans for service coroutines, span attributes, trace id lookup.

Spans are no-ops until the lifespan installs a TracerProvider (see
app.shared.telemetry.telemetry), so services can be decorated unconditionally.
"""

import functools
import inspect
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

P = ParamSpec("P")
R = TypeVar("R")

_tracer = trace.get_tracer("tasktrack")

# Argument names copied onto spans; everything else (titles, descriptions) stays out.
_SPAN_ARGUMENTS = frozenset({
    "task_id", "task_ids", "subtask_id", "user_id", "assignee_id", "new_parent_id",
    "status", "priority", "progress", "target_type", "reason",
})


def _attribute_value(value: Any) -> str | int | bool:
    if isinstance(value, bool | int):
        return value
    if isinstance(value, str):
        return value
    if isinstance(value, Iterable) and not isinstance(value, Mapping):
        return len(list(value))
    return str(getattr(value, "value", value))


def _argument_attributes(arguments: Mapping[str, Any]) -> dict[str, str | int | bool]:
    return {
        f"arg.{name}": _attribute_value(value)
        for name, value in arguments.items()
        if name in _SPAN_ARGUMENTS and value is not None
    }


def traced(
    span_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Run the decorated coroutine inside a span named span_name.

    Allowlisted arguments (ids, status, progress...) become `arg.*` attributes;
    list arguments such as task_ids are recorded as their length. Exceptions
    mark the span as failed and propagate unchanged.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"@traced supports coroutine functions only: {func.__qualname__}")
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with _tracer.start_as_current_span(
                span_name, record_exception=False, set_status_on_exception=False
            ) as span:
                if span.is_recording():
                    bound = signature.bind_partial(*args, **kwargs)
                    span.set_attributes(_argument_attributes(bound.arguments))
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, type(e).__name__))
                    span.record_exception(e)
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span (ignored when nothing is recording)."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(attributes)


def get_trace_id() -> str | None:
    """Return the current span's trace ID as 32-char hex, or None."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        return format(ctx.trace_id, "032x")
    return None
