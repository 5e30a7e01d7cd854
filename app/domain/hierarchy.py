"""Task hierarchy rules: parent/child types, cycles, sibling ordering.

Pure validation helpers; callers load the data and raise on the first
violation reported here.
"""

from collections.abc import Iterable, Sequence

from app.domain.enums import TaskType
from app.domain.exceptions import ValidationException


def ensure_parent_can_contain(parent_type: TaskType, child_type: TaskType) -> None:
    """Raise ValidationException unless parent_type may contain child_type (EPIC > STORY > TASK)."""
    if not parent_type.can_contain(child_type):
        raise ValidationException(
            f"A {parent_type.value} task cannot contain a {child_type.value} task",
            field="parent_id",
            details={"parent_type": parent_type.value, "child_type": child_type.value},
        )


def ensure_no_cycle(
    task_id: str,
    new_parent_id: str,
    new_parent_ancestor_ids: Iterable[str],
) -> None:
    """Raise ValidationException if making new_parent_id the parent of task_id creates a cycle.

    Args:
        task_id: Task being moved.
        new_parent_id: Proposed parent.
        new_parent_ancestor_ids: All ancestors of the proposed parent (any order).
    """
    if new_parent_id == task_id or task_id in set(new_parent_ancestor_ids):
        raise ValidationException(
            "A task cannot become its own ancestor",
            field="parent_id",
            details={"task_id": task_id, "new_parent_id": new_parent_id},
        )


def ensure_type_conversion(
    target_type: TaskType,
    parent_type: TaskType | None,
    child_types: Iterable[TaskType],
) -> None:
    """Raise ValidationException if converting to target_type breaks the hierarchy."""
    if parent_type is not None:
        ensure_parent_can_contain(parent_type, target_type)
    for child_type in set(child_types):
        if not target_type.can_contain(child_type):
            raise ValidationException(
                f"A {target_type.value} task cannot contain its existing "
                f"{child_type.value} children",
                field="task_type",
                details={"target_type": target_type.value, "child_type": child_type.value},
            )


def ensure_exact_permutation(current_ids: Sequence[str], ordered_ids: Sequence[str]) -> None:
    """Raise ValidationException unless ordered_ids is a permutation of current_ids.

    Duplicates, missing ids and foreign ids are all rejected; details list them.
    """
    if len(set(ordered_ids)) != len(ordered_ids):
        seen: set[str] = set()
        duplicates = sorted({i for i in ordered_ids if i in seen or seen.add(i)})
        raise ValidationException(
            "Subtask ids must not repeat",
            field="subtask_ids",
            details={"duplicate_ids": duplicates},
        )
    current = set(current_ids)
    given = set(ordered_ids)
    if current != given:
        raise ValidationException(
            "Subtask ids must match the task's current subtasks exactly",
            field="subtask_ids",
            details={
                "missing_ids": sorted(current - given),
                "unknown_ids": sorted(given - current),
            },
        )
