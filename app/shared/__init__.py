"""Shared utilities: request context, enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from app.shared.context import (
    ActorContext,
    RequestMetadata,
    clear_current_user,
    get_actor_context,
    get_current_actor_id,
    get_current_actor_type,
    get_current_trace_id,
    get_request_metadata,
    request_scope,
    set_current_user,
)
from app.shared.enums import ActionType, ActorType, EntityType
from app.shared.utils import ensure_utc, generate_cuid, to_snapshot, utc_now

__all__ = [
    "RequestMetadata",
    "request_scope",
    "get_request_metadata",
    "get_current_trace_id",
    "set_current_user",
    "clear_current_user",
    "get_current_actor_id",
    "get_current_actor_type",
    "get_actor_context",
    "ActorContext",
    "ActorType",
    "ActionType",
    "EntityType",
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "to_snapshot",
]
