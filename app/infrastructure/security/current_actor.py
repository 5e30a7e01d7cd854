"""Identity collaborator backed by the request context.

Authentication happens outside this service; whatever authenticates the
caller binds the user id with app.shared.context.set_current_user (or
request_scope). This provider only reads it back.
"""

from app.shared.context import get_current_actor_id


class ContextActorProvider:
    """Implements ICurrentActorProvider from the current_user_id context var."""

    def get_current_actor_id(self) -> str | None:
        return get_current_actor_id()
