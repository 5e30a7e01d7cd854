"""Activity recorder: best-effort audit trail of service-level actions.

Runs after the audited operation has committed, in its own unit of work.
Recording never fails the operation it describes: missing actor or request
metadata skips the entry with a warning, and storage errors are logged.

Action kinds come from a method-name table (DEFAULT_ACTION_TABLE merged with
the AUDIT_ACTION_OVERRIDES setting), so auditing a new operation means adding
a table entry and decorating the method with @tracked.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, ParamSpec, TypeVar

from app.application.dtos.activity_log import ActivityLogEntryCreate, ActivityLogResult
from app.application.interfaces.services import ICurrentActorProvider, UnitOfWorkFactory
from app.shared.context import RequestMetadata, get_request_metadata
from app.shared.enums import ActionType, EntityType
from app.shared.utils.serialization import to_snapshot

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

DEFAULT_ACTION_TABLE: Mapping[str, ActionType] = {
    # tasks
    "create_task": ActionType.CREATE,
    "update_task": ActionType.UPDATE,
    "update_progress": ActionType.UPDATE,
    "change_status": ActionType.UPDATE,
    "change_priority": ActionType.UPDATE,
    "assign_task": ActionType.ASSIGN,
    "soft_delete_task": ActionType.DELETE,
    "archive_task": ActionType.ARCHIVE,
    "move_task": ActionType.MOVE,
    "convert_task_type": ActionType.CONVERT,
    # subtasks
    "create_subtask": ActionType.CREATE,
    "add_subtasks": ActionType.CREATE,
    "update_subtask": ActionType.UPDATE,
    "toggle_subtask_completion": ActionType.UPDATE,
    "reorder_subtasks": ActionType.UPDATE,
    "delete_subtask": ActionType.DELETE,
    # bulk (one entry per applied task)
    "update_multiple_tasks_status": ActionType.UPDATE,
    "update_multiple_tasks_progress": ActionType.UPDATE,
    "assign_multiple_tasks": ActionType.ASSIGN,
    "update_multiple_tasks_priority": ActionType.UPDATE,
    "soft_delete_multiple_tasks": ActionType.DELETE,
    "archive_multiple_tasks": ActionType.ARCHIVE,
    "move_multiple_tasks_to_parent": ActionType.MOVE,
    "convert_multiple_tasks_type": ActionType.CONVERT,
}


def build_action_table(overrides: Mapping[str, str] | None = None) -> dict[str, ActionType]:
    """Default table with overrides (method name -> ActionType value) applied on top."""
    table = dict(DEFAULT_ACTION_TABLE)
    for method_name, action in (overrides or {}).items():
        table[method_name] = ActionType(action)
    return table


class ActivityRecorder:
    """Writes ActivityLog entries; the only writer of the activity log."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        actor_provider: ICurrentActorProvider | None = None,
        action_table: Mapping[str, ActionType] | None = None,
        enabled: bool = True,
    ) -> None:
        self._uow_factory = uow_factory
        self._actor_provider = actor_provider
        self._action_table = dict(action_table if action_table is not None else DEFAULT_ACTION_TABLE)
        self.enabled = enabled

    def resolve_action(self, method_name: str) -> ActionType | None:
        """Return the ActionType registered for method_name, or None."""
        return self._action_table.get(method_name)

    async def record(
        self,
        actor_id: str | None,
        action: ActionType,
        entity_type: EntityType | str,
        entity_id: str | None,
        metadata: RequestMetadata | None,
        *,
        task_id: str | None = None,
        workspace_id: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> ActivityLogResult | None:
        """Persist one entry. Returns None (and never raises) when the entry is skipped or fails."""
        if not self.enabled:
            return None
        entity = entity_type.value if isinstance(entity_type, EntityType) else entity_type
        if metadata is None:
            logger.warning(
                "Skipping activity log for %s %s %s: no request metadata",
                action.value,
                entity,
                entity_id,
            )
            return None
        if not actor_id:
            logger.warning(
                "Skipping activity log for %s %s %s: actor could not be resolved",
                action.value,
                entity,
                entity_id,
            )
            return None
        entry = ActivityLogEntryCreate(
            user_id=actor_id,
            action=action,
            entity_type=entity,
            entity_id=entity_id,
            task_id=task_id,
            workspace_id=workspace_id,
            old_values=old_values,
            new_values=new_values,
            ip_address=metadata.ip_address,
            user_agent=metadata.user_agent,
            trace_id=metadata.trace_id,
        )
        try:
            async with self._uow_factory() as uow:
                return await uow.activity_logs.create(entry)
        except Exception:
            logger.exception(
                "Failed to record activity log for %s %s %s", action.value, entity, entity_id
            )
            return None

    async def record_action(
        self,
        method_name: str,
        *,
        entity_type: EntityType | str,
        entity_id: str | None,
        actor_id: str | None = None,
        task_id: str | None = None,
        workspace_id: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> ActivityLogResult | None:
        """Resolve action kind, actor and request metadata, then record.

        actor_id defaults to the identity collaborator's current actor; request
        metadata always comes from the request context.
        """
        if not self.enabled:
            return None
        action = self.resolve_action(method_name)
        if action is None:
            logger.warning("No action type mapped for %s; activity not recorded", method_name)
            return None
        if actor_id is None and self._actor_provider is not None:
            actor_id = self._actor_provider.get_current_actor_id()
        return await self.record(
            actor_id,
            action,
            entity_type,
            entity_id,
            get_request_metadata(),
            task_id=task_id,
            workspace_id=workspace_id,
            old_values=old_values,
            new_values=new_values,
        )

    async def list_for_task(
        self, task_id: str, skip: int = 0, limit: int = 100
    ) -> list[ActivityLogResult]:
        """Entries referencing task_id, newest first (soft-deleted entries excluded)."""
        async with self._uow_factory() as uow:
            return await uow.activity_logs.list_for_task(task_id, skip=skip, limit=limit)

    async def soft_delete(self, log_id: str) -> bool:
        """Hide an entry; the row itself is kept. False if missing or already deleted."""
        async with self._uow_factory() as uow:
            return await uow.activity_logs.soft_delete(log_id)


def _entity_id(result: Any, arguments: Mapping[str, Any], entity_type: EntityType) -> str | None:
    result_id = getattr(result, "id", None)
    if isinstance(result_id, str):
        return result_id
    return arguments.get(f"{entity_type.value}_id")


def _task_reference(
    result: Any, arguments: Mapping[str, Any], entity_type: EntityType, entity_id: str | None
) -> str | None:
    if entity_type is EntityType.TASK:
        return entity_id
    task_id = getattr(result, "task_id", None)
    if isinstance(task_id, str):
        return task_id
    return arguments.get("task_id")


def tracked(
    entity_type: EntityType, *, action: str | None = None
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Record an activity log entry after the decorated service coroutine succeeds.

    The service instance must expose `activity_recorder` (None disables
    auditing). The actor is the `user_id` argument when the method takes one,
    otherwise the identity collaborator's current actor. Exceptions from the
    wrapped method propagate unchanged and are never audited.

    Args:
        entity_type: Kind of entity the method acts on.
        action: Table key to use instead of the method name.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        method_name = action or func.__name__
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            result = await func(*args, **kwargs)
            recorder: ActivityRecorder | None = getattr(args[0], "activity_recorder", None)
            if recorder is None or not recorder.enabled:
                return result
            try:
                bound = signature.bind(*args, **kwargs)
                bound.apply_defaults()
                arguments = bound.arguments
                entity_id = _entity_id(result, arguments, entity_type)
                await recorder.record_action(
                    method_name,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    actor_id=arguments.get("user_id"),
                    task_id=_task_reference(result, arguments, entity_type, entity_id),
                    workspace_id=getattr(result, "workspace_id", None),
                    new_values={
                        "method": func.__name__,
                        "class": type(args[0]).__name__,
                        "result": to_snapshot(result),
                    },
                )
            except Exception:
                logger.exception("Activity tracking failed for %s", method_name)
            return result

        return wrapper

    return decorator
