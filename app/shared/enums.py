"""Shared enumerations for the task tracker.

Cross-cutting enums used by application and infrastructure (audit, actor
type). Task-specific enums (status, priority, type) live in app.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class ActorType(_ValuesMixin, str, Enum):
    """Who performed an action (audit and request context)."""

    USER = "user"
    SYSTEM = "system"


class ActionType(_ValuesMixin, str, Enum):
    """Kind of action recorded in the activity log."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    VIEW = "view"
    COMMENT = "comment"
    ASSIGN = "assign"
    COMPLETE = "complete"
    REOPEN = "reopen"
    ARCHIVE = "archive"
    MOVE = "move"
    CONVERT = "convert"
    INVITE = "invite"
    ACCEPT = "accept"
    REJECT = "reject"
    UPLOAD = "upload"
    DOWNLOAD = "download"
    SHARE = "share"
    UNSHARE = "unshare"
    LOGIN = "login"
    REGISTER = "register"
    LOGOUT = "logout"
    FAILED_LOGIN = "failed_login"


class EntityType(_ValuesMixin, str, Enum):
    """Entity types that appear in activity log entries."""

    TASK = "task"
    SUBTASK = "subtask"
    WORKSPACE = "workspace"
