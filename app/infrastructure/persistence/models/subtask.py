"""Subtask ORM model. Exclusively owned by one task; ordered per task."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import SoftDeleteModel

if TYPE_CHECKING:
    from app.infrastructure.persistence.models.task import Task


class Subtask(SoftDeleteModel, Base):
    """Subtask. Table: subtask. Deleted with its task (FK CASCADE)."""

    __tablename__ = "subtask"

    task_id: Mapped[str] = mapped_column(
        String, ForeignKey("task.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # Not unique: positions may collide transiently while a reorder is in flight.
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    task: Mapped[Task] = relationship(back_populates="subtasks", lazy="raise")

    __table_args__ = (Index("ix_subtask_task_sort", "task_id", "sort_order"),)
