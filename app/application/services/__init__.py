"""Application services: activity auditing and progress aggregation."""

from app.application.services.activity_recorder import (
    DEFAULT_ACTION_TABLE,
    ActivityRecorder,
    build_action_table,
    tracked,
)
from app.application.services.progress_aggregator import ProgressAggregator

__all__ = [
    "DEFAULT_ACTION_TABLE",
    "ActivityRecorder",
    "ProgressAggregator",
    "build_action_table",
    "tracked",
]
