"""Security: identity resolution for the current request."""

from app.infrastructure.security.current_actor import ContextActorProvider

__all__ = ["ContextActorProvider"]
