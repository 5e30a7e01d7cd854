"""Request context management using contextvars.

Request-scoped storage for caller metadata (IP, user agent, trace id,
timing) and the current actor. Each asyncio task or thread sees its own
values; `request_scope` guarantees the values are reset on every exit
path so nothing leaks into a later request on the same worker.

Usage:
    with request_scope(RequestMetadata(ip_address="10.0.0.1", ...), user_id="u1"):
        ...  # get_request_metadata() / get_current_actor_id() available here
    get_request_metadata()  # -> None
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime

from app.shared.enums import ActorType
from app.shared.utils.datetime import utc_now

_current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)
_current_actor_type: ContextVar[ActorType] = ContextVar(
    "current_actor_type", default=ActorType.SYSTEM
)


@dataclass(frozen=True)
class RequestMetadata:
    """Ephemeral metadata for one inbound request. Never persisted as-is."""

    ip_address: str | None
    user_agent: str | None
    trace_id: str
    started_at: datetime = field(default_factory=utc_now)
    started_monotonic: float = field(default_factory=time.monotonic, repr=False)

    def elapsed_ms(self) -> float:
        """Milliseconds since the request entered the service."""
        return (time.monotonic() - self.started_monotonic) * 1000.0


_request_metadata: ContextVar[RequestMetadata | None] = ContextVar(
    "request_metadata", default=None
)


@dataclass(frozen=True)
class ActorContext:
    """Immutable snapshot of the current actor context."""

    user_id: str | None
    actor_type: ActorType
    request: RequestMetadata | None = None


def get_request_metadata() -> RequestMetadata | None:
    """Return the metadata of the request being handled, or None outside a request."""
    return _request_metadata.get()


def get_current_trace_id() -> str | None:
    """Trace id of the current request, or None."""
    metadata = _request_metadata.get()
    return metadata.trace_id if metadata else None


def set_current_user(
    user_id: str | None,
    actor_type: ActorType = ActorType.USER,
) -> None:
    """Set the current actor for this request.

    Called by the authentication layer once the caller is known.

    Raises:
        ValueError: If actor_type is USER and user_id is None or empty.
    """
    if actor_type == ActorType.USER and not user_id:
        raise ValueError("user_id is required when actor_type is USER")
    _current_user_id.set(user_id)
    _current_actor_type.set(actor_type)


def clear_current_user() -> None:
    """Clear the current actor."""
    _current_user_id.set(None)
    _current_actor_type.set(ActorType.SYSTEM)


def get_current_actor_id() -> str | None:
    """Return the current user ID, or None if not authenticated."""
    return _current_user_id.get()


def get_current_actor_type() -> ActorType:
    """Return the current actor type (defaults to SYSTEM if not set)."""
    return _current_actor_type.get()


def get_actor_context() -> ActorContext:
    """Return a snapshot of the current actor and request metadata."""
    return ActorContext(
        user_id=_current_user_id.get(),
        actor_type=_current_actor_type.get(),
        request=_request_metadata.get(),
    )


@contextmanager
def request_scope(
    metadata: RequestMetadata,
    user_id: str | None = None,
    actor_type: ActorType | None = None,
) -> Iterator[RequestMetadata]:
    """Bind request metadata (and optionally the actor) for the duration of the block.

    All values are restored through their ContextVar tokens on exit, whether the
    block returns or raises.
    """
    if actor_type is None:
        actor_type = ActorType.USER if user_id else ActorType.SYSTEM
    if actor_type == ActorType.USER and not user_id:
        raise ValueError("user_id is required when actor_type is USER")
    metadata_token = _request_metadata.set(metadata)
    user_token = _current_user_id.set(user_id)
    actor_token = _current_actor_type.set(actor_type)
    try:
        yield metadata
    finally:
        _current_actor_type.reset(actor_token)
        _current_user_id.reset(user_token)
        _request_metadata.reset(metadata_token)
