"""Request context middleware.

Builds RequestMetadata (client IP, User-Agent, trace id, start time) for each
HTTP request and runs the rest of the stack inside request_scope, so the
metadata and the actor are reset when the request ends, on success or error.
The trace id is echoed on the response.

Client-provided request ids are sanitized (length + character set) to prevent
log injection; otherwise the active span's trace id or a new UUID is used.
Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming and background tasks.
"""

import logging
import re
import uuid
from typing import Callable

from app.shared.context import RequestMetadata, request_scope
from app.shared.telemetry.tracing import get_trace_id

logger = logging.getLogger(__name__)

# Safe for logging: alphanumeric, hyphen, underscore; max length to avoid abuse.
REQUEST_ID_MAX_LENGTH = 64
REQUEST_ID_ALLOWED_PATTERN = re.compile(
    r"^[a-zA-Z0-9_-]{1," + str(REQUEST_ID_MAX_LENGTH) + r"}$"
)
USER_AGENT_MAX_LENGTH = 512


def _get_header(scope: dict, name: str) -> str | None:
    """Return first header value for name (case-insensitive). Headers are (bytes, bytes)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


def _sanitize_request_id(raw: str | None) -> str | None:
    """Return raw if valid and safe; otherwise None."""
    if not raw or not REQUEST_ID_ALLOWED_PATTERN.match(raw.strip()):
        return None
    return raw.strip()


def _resolve_trace_id(scope: dict, header_name: str) -> str:
    return (
        _sanitize_request_id(_get_header(scope, header_name))
        or get_trace_id()
        or str(uuid.uuid4())
    )


def _client_ip(scope: dict, trust_forwarded_for: bool) -> str | None:
    """First X-Forwarded-For hop when trusted, else the socket peer."""
    if trust_forwarded_for:
        forwarded = _get_header(scope, "x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop
    client = scope.get("client")
    return client[0] if client else None


def build_request_metadata(
    scope: dict,
    header_name: str = "X-Request-ID",
    trust_forwarded_for: bool = True,
) -> RequestMetadata:
    """Build RequestMetadata from an ASGI HTTP scope."""
    user_agent = _get_header(scope, "user-agent")
    return RequestMetadata(
        ip_address=_client_ip(scope, trust_forwarded_for),
        user_agent=user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else None,
        trace_id=_resolve_trace_id(scope, header_name),
    )


def RequestContextMiddleware(
    app: Callable,
    header_name: str = "X-Request-ID",
    trust_forwarded_for: bool = True,
) -> Callable:
    """Bind request metadata for the duration of each HTTP request. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        metadata = build_request_metadata(scope, header_name, trust_forwarded_for)
        scope.setdefault("state", {})["request_id"] = metadata.trace_id
        status_code = 500

        async def send_wrapper(message: dict) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = list(message.get("headers", []))
                headers.append((header_name.encode(), metadata.trace_id.encode()))
                message["headers"] = headers
            await send(message)

        with request_scope(metadata):
            try:
                await app(scope, receive, send_wrapper)
            finally:
                logger.info(
                    "%s %s -> %d (%.1f ms)",
                    scope.get("method", "-"),
                    scope.get("path", "-"),
                    status_code,
                    metadata.elapsed_ms(),
                )

    return asgi_app
