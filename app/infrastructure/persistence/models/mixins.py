"""Column mixins shared by the tracker's tables.

CuidMixin: string primary key. TimestampMixin: created_at/updated_at.
SoftDeleteMixin: deleted_at plus the live() filter every repository query
uses. SoftDeleteModel bundles all three for task, subtask and workspace.
"""

from datetime import datetime

from sqlalchemy import ColumnElement, DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_cuid


def _utc_column(**kwargs: object) -> Mapped[datetime]:
    # Client-side default keeps sub-second ordering on SQLite; server default covers raw inserts.
    return mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        **kwargs,
    )


class CuidMixin:
    """id: CUID2 string primary key."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class TimestampMixin:
    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return _utc_column()

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return _utc_column(onupdate=utc_now)


class SoftDeleteMixin:
    """deleted_at: set once on soft delete; rows with a value are hidden from reads."""

    @declared_attr
    def deleted_at(cls) -> Mapped[datetime | None]:
        return mapped_column(DateTime(timezone=True), nullable=True, index=True)

    @classmethod
    def live(cls) -> ColumnElement[bool]:
        """WHERE clause selecting rows that are not soft-deleted."""
        return cls.deleted_at.is_(None)


class SoftDeleteModel(CuidMixin, TimestampMixin, SoftDeleteMixin):
    __abstract__ = True
