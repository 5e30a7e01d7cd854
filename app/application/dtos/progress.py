"""Progress update signal: transient message from subtask mutations to the aggregator."""

from dataclasses import dataclass, field
from datetime import datetime

from app.shared.utils.datetime import utc_now


@dataclass(frozen=True)
class ProgressUpdateSignal:
    """Asks the aggregator to recompute one task's progress. Never persisted."""

    task_id: str
    reason: str
    emitted_at: datetime = field(default_factory=utc_now)

    def age_ms(self) -> float:
        """Milliseconds the signal has spent between publish and now."""
        return (utc_now() - self.emitted_at).total_seconds() * 1000.0
