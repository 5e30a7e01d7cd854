"""HTTP middleware: request context (metadata, trace id, actor scope).

Applied in main app. Import and use from app.main.
"""

from app.middleware.request_context import (
    RequestContextMiddleware,
    build_request_metadata,
)

__all__ = ["RequestContextMiddleware", "build_request_metadata"]
