"""UTC timestamps for completed_at, archived_at, deleted_at and the audit trail."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize a value read back from storage to aware UTC.

    SQLite returns naive datetimes even for timezone=True columns; those are
    stored as UTC, so tzinfo is attached rather than converted.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
