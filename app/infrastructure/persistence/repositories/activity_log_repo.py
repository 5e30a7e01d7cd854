"""Activity log repository. Append-only; implements IActivityLogRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.activity_log import ActivityLogEntryCreate, ActivityLogResult
from app.infrastructure.persistence.models.activity_log import ActivityLog
from app.shared.enums import ActionType
from app.shared.utils.datetime import ensure_utc, utc_now
from app.shared.utils.generators import generate_cuid


def _orm_to_result(row: ActivityLog) -> ActivityLogResult:
    """Map ORM to application DTO."""
    return ActivityLogResult(
        id=row.id,
        user_id=row.user_id,
        action=ActionType(row.action),
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        task_id=row.task_id,
        workspace_id=row.workspace_id,
        old_values=row.old_values,
        new_values=row.new_values,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        trace_id=row.trace_id,
        created_at=ensure_utc(row.created_at),
        deleted_at=ensure_utc(row.deleted_at),
    )


class ActivityLogRepository:
    """Append-only activity log repository. No update except soft delete; no delete."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, entry: ActivityLogEntryCreate) -> ActivityLogResult:
        """Append one activity log entry; return created record."""
        row = ActivityLog(
            id=generate_cuid(),
            user_id=entry.user_id,
            action=entry.action.value,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            task_id=entry.task_id,
            workspace_id=entry.workspace_id,
            old_values=entry.old_values,
            new_values=entry.new_values,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            trace_id=entry.trace_id,
        )
        self.db.add(row)
        await self.db.flush()
        await self.db.refresh(row)
        return _orm_to_result(row)

    async def list_for_task(
        self, task_id: str, skip: int = 0, limit: int = 100
    ) -> list[ActivityLogResult]:
        """List live entries for a task (newest first)."""
        stmt = (
            select(ActivityLog)
            .where(ActivityLog.task_id == task_id, ActivityLog.live())
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [_orm_to_result(r) for r in result.scalars().all()]

    async def soft_delete(self, log_id: str) -> bool:
        """Set deleted_at; the only change the model allows after insert."""
        result = await self.db.execute(
            select(ActivityLog).where(ActivityLog.id == log_id, ActivityLog.live())
        )
        row = result.scalar_one_or_none()
        if row is None:
            return False
        row.deleted_at = utc_now()
        await self.db.flush()
        return True
