"""Small shared helpers (identifiers, UTC datetimes, serialization)."""

from app.shared.utils.datetime import ensure_utc, utc_now
from app.shared.utils.generators import generate_cuid
from app.shared.utils.serialization import to_snapshot

__all__ = ["ensure_utc", "generate_cuid", "to_snapshot", "utc_now"]
