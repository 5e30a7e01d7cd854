"""Composition root: builds the task tracker services from infrastructure.

Services only know the application ports; this module is the one place that
picks the SQLAlchemy unit of work, the in-process channel and the context
actor provider.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.services.activity_recorder import ActivityRecorder, build_action_table
from app.application.services.progress_aggregator import ProgressAggregator
from app.application.use_cases.subtasks import SubtaskService
from app.application.use_cases.tasks import TaskBulkOperationService, TaskService
from app.core.config import Settings
from app.infrastructure.messaging.progress_channel import InProcessProgressChannel
from app.infrastructure.persistence.unit_of_work import sqlalchemy_uow_factory
from app.infrastructure.security.current_actor import ContextActorProvider


@dataclass
class TaskTrackerServices:
    """Everything a request handler or background job needs, wired together."""

    channel: InProcessProgressChannel
    aggregator: ProgressAggregator
    activity_recorder: ActivityRecorder
    subtasks: SubtaskService
    tasks: TaskService
    bulk: TaskBulkOperationService


def build_services(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> TaskTrackerServices:
    """Wire services for one process. The channel is returned stopped; call channel.start()."""
    uow_factory = sqlalchemy_uow_factory(session_factory)
    channel = InProcessProgressChannel(
        maxsize=settings.progress_queue_maxsize,
        workers=settings.progress_workers,
    )
    aggregator = ProgressAggregator(uow_factory)
    channel.subscribe(aggregator.handle)
    recorder = ActivityRecorder(
        uow_factory,
        actor_provider=ContextActorProvider(),
        action_table=build_action_table(settings.audit_action_overrides),
        enabled=settings.audit_enabled,
    )
    tasks = TaskService(uow_factory, channel, activity_recorder=recorder)
    return TaskTrackerServices(
        channel=channel,
        aggregator=aggregator,
        activity_recorder=recorder,
        subtasks=SubtaskService(uow_factory, channel, activity_recorder=recorder),
        tasks=tasks,
        bulk=TaskBulkOperationService(tasks, activity_recorder=recorder),
    )
