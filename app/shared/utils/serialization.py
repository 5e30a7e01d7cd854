"""JSON-safe snapshots of DTOs for activity log old/new values."""

from typing import Any

from pydantic_core import to_jsonable_python


def to_snapshot(value: Any) -> Any:
    """Return a JSON-compatible copy of value (dataclasses, enums, datetimes, lists).

    Used for ActivityLog.old_values / new_values so the JSON column never
    receives objects the driver cannot encode. Unknown objects fall back to str().
    """
    if value is None:
        return None
    return to_jsonable_python(value, fallback=str)
