"""Subtask repository. A subtask is live when it and its owning task are not soft-deleted."""

from __future__ import annotations

from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.subtask import SubtaskProgressCounts, SubtaskResult
from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.persistence.models.subtask import Subtask
from app.infrastructure.persistence.models.task import Task
from app.shared.utils.datetime import ensure_utc


def _to_result(s: Subtask) -> SubtaskResult:
    """Map Subtask ORM to SubtaskResult DTO."""
    return SubtaskResult(
        id=s.id,
        task_id=s.task_id,
        title=s.title,
        description=s.description,
        is_completed=s.is_completed,
        completed_at=ensure_utc(s.completed_at),
        sort_order=s.sort_order,
        created_at=ensure_utc(s.created_at),
        updated_at=ensure_utc(s.updated_at),
    )


def _live_subtasks():
    return (
        select(Subtask)
        .join(Task, Subtask.task_id == Task.id)
        .where(Subtask.live(), Task.live())
    )


class SubtaskRepository:
    """Subtask repository. Implements ISubtaskRepository."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get_live_row(self, subtask_id: str) -> Subtask | None:
        result = await self.db.execute(_live_subtasks().where(Subtask.id == subtask_id))
        return result.scalar_one_or_none()

    async def get_live(self, subtask_id: str) -> SubtaskResult | None:
        row = await self._get_live_row(subtask_id)
        return _to_result(row) if row is not None else None

    async def list_live(self, task_id: str) -> list[SubtaskResult]:
        """Live subtasks of task_id ordered by sort position."""
        stmt = _live_subtasks().where(Subtask.task_id == task_id).order_by(
            Subtask.sort_order, Subtask.created_at
        )
        result = await self.db.execute(stmt)
        return [_to_result(s) for s in result.scalars().all()]

    async def create(
        self,
        task_id: str,
        title: str,
        description: str | None,
        sort_order: int,
    ) -> SubtaskResult:
        subtask = Subtask(
            task_id=task_id,
            title=title,
            description=description,
            is_completed=False,
            sort_order=sort_order,
        )
        self.db.add(subtask)
        await self.db.flush()
        await self.db.refresh(subtask)
        return _to_result(subtask)

    async def update(self, subtask_id: str, **values: Any) -> SubtaskResult:
        """Set the given columns on a live subtask and return the updated DTO."""
        subtask = await self._get_live_row(subtask_id)
        if subtask is None:
            raise ResourceNotFoundException("subtask", subtask_id)
        for key, value in values.items():
            setattr(subtask, key, value)
        await self.db.flush()
        await self.db.refresh(subtask)
        return _to_result(subtask)

    async def set_sort_orders(self, positions: dict[str, int]) -> None:
        for subtask_id, position in positions.items():
            await self.db.execute(
                update(Subtask)
                .where(Subtask.id == subtask_id)
                .values(sort_order=position)
            )

    async def shift_sort_orders(self, task_id: str, from_position: int, delta: int) -> None:
        """Move every live sibling at or after from_position by delta."""
        await self.db.execute(
            update(Subtask)
            .where(
                Subtask.task_id == task_id,
                Subtask.live(),
                Subtask.sort_order >= from_position,
            )
            .values(sort_order=Subtask.sort_order + delta)
        )

    async def next_sort_order(self, task_id: str) -> int:
        result = await self.db.execute(
            select(func.max(Subtask.sort_order)).where(
                Subtask.task_id == task_id, Subtask.live()
            )
        )
        current_max = result.scalar_one_or_none()
        return 0 if current_max is None else current_max + 1

    async def count_progress(self, task_id: str) -> SubtaskProgressCounts:
        """Live subtask total and completed count (soft-deleted rows count for neither)."""
        stmt = select(
            func.count(Subtask.id),
            func.coalesce(func.sum(case((Subtask.is_completed.is_(True), 1), else_=0)), 0),
        ).where(Subtask.task_id == task_id, Subtask.live())
        total, completed = (await self.db.execute(stmt)).one()
        return SubtaskProgressCounts(total=int(total), completed=int(completed))
