"""DTOs for the activity log (who did what to which entity, and when)."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.shared.enums import ActionType


@dataclass(frozen=True)
class ActivityLogEntryCreate:
    """Input for appending one activity log record. Append-only; no update."""

    user_id: str
    action: ActionType
    entity_type: str
    entity_id: str | None
    task_id: str | None
    workspace_id: str | None
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    trace_id: str | None


@dataclass(frozen=True)
class ActivityLogResult:
    """Single activity log entry (read-model)."""

    id: str
    user_id: str
    action: ActionType
    entity_type: str
    entity_id: str | None
    task_id: str | None
    workspace_id: str | None
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    trace_id: str | None
    created_at: datetime
    deleted_at: datetime | None
