"""Activity log ORM model. Append-only record of service-level actions."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Connection, DateTime, ForeignKey, Index, String, Text, event
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, Mapper, mapped_column
from sqlalchemy.sql import func

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import CuidMixin, SoftDeleteMixin
from app.shared.utils.datetime import utc_now

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
_JSONDocument = JSON().with_variant(JSONB(), "postgresql")

# Columns that may change after insert (soft-delete bookkeeping only).
_MUTABLE_COLUMNS = frozenset({"deleted_at"})


class ActivityLog(CuidMixin, SoftDeleteMixin, Base):
    """Who did what to which entity, and when. No update except soft delete; no delete."""

    __tablename__ = "activity_log"

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("task.id", ondelete="SET NULL"), nullable=True
    )
    workspace_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("workspace.id", ondelete="SET NULL"), nullable=True, index=True
    )
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String, nullable=True)
    old_values: Mapped[dict[str, Any] | None] = mapped_column(_JSONDocument, nullable=True)
    new_values: Mapped[dict[str, Any] | None] = mapped_column(_JSONDocument, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    trace_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_activity_log_task_created", "task_id", "created_at"),)


@event.listens_for(ActivityLog, "before_update")
def _prevent_activity_log_updates(
    _mapper: Mapper[Any], _connection: Connection, target: ActivityLog
) -> None:
    """Activity log entries are immutable; only deleted_at may be set."""
    state = sa_inspect(target)
    changed = sorted(
        attr.key
        for attr in state.attrs
        if attr.key not in _MUTABLE_COLUMNS and attr.history.has_changes()
    )
    if changed:
        raise ValueError(
            f"Activity log entries are immutable; cannot change: {', '.join(changed)}"
        )


@event.listens_for(ActivityLog, "before_delete")
def _prevent_activity_log_deletes(
    _mapper: Mapper[Any], _connection: Connection, _target: ActivityLog
) -> None:
    """Activity log entries cannot be hard-deleted; use soft delete."""
    raise ValueError("Activity log entries cannot be deleted.")
