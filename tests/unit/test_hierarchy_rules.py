"""Tests for task hierarchy rules (types, cycles, reorder permutations)."""

import pytest

from app.domain.enums import TaskType
from app.domain.exceptions import ValidationException
from app.domain.hierarchy import (
    ensure_exact_permutation,
    ensure_no_cycle,
    ensure_parent_can_contain,
    ensure_type_conversion,
)


class TestTaskTypeContainment:
    def test_epic_contains_story_and_task(self) -> None:
        assert TaskType.EPIC.can_contain(TaskType.STORY)
        assert TaskType.EPIC.can_contain(TaskType.TASK)

    def test_story_contains_task_only(self) -> None:
        assert TaskType.STORY.can_contain(TaskType.TASK)
        assert not TaskType.STORY.can_contain(TaskType.EPIC)
        assert not TaskType.STORY.can_contain(TaskType.STORY)

    def test_task_contains_nothing(self) -> None:
        assert not TaskType.TASK.can_contain(TaskType.TASK)

    def test_ensure_parent_can_contain_raises(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            ensure_parent_can_contain(TaskType.TASK, TaskType.STORY)
        assert exc_info.value.details["field"] == "parent_id"


class TestEnsureNoCycle:
    def test_self_parent_rejected(self) -> None:
        with pytest.raises(ValidationException):
            ensure_no_cycle("a", "a", [])

    def test_descendant_parent_rejected(self) -> None:
        # b's ancestors are [a]: moving a under b would make a its own ancestor
        with pytest.raises(ValidationException) as exc_info:
            ensure_no_cycle("a", "b", ["a"])
        assert exc_info.value.details["new_parent_id"] == "b"

    def test_unrelated_parent_allowed(self) -> None:
        ensure_no_cycle("a", "c", ["root"])


class TestEnsureTypeConversion:
    def test_parent_must_accept_target(self) -> None:
        with pytest.raises(ValidationException):
            ensure_type_conversion(TaskType.EPIC, TaskType.STORY, [])

    def test_target_must_accept_children(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            ensure_type_conversion(TaskType.TASK, None, [TaskType.TASK])
        assert exc_info.value.details["field"] == "task_type"

    def test_valid_conversion(self) -> None:
        ensure_type_conversion(TaskType.STORY, TaskType.EPIC, [TaskType.TASK])


class TestEnsureExactPermutation:
    def test_permutation_accepted(self) -> None:
        ensure_exact_permutation(["a", "b", "c"], ["c", "a", "b"])

    def test_missing_id_rejected(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            ensure_exact_permutation(["a", "b", "c"], ["a", "b"])
        assert exc_info.value.details["missing_ids"] == ["c"]
        assert exc_info.value.details["unknown_ids"] == []

    def test_foreign_id_rejected(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            ensure_exact_permutation(["a", "b"], ["a", "x"])
        assert exc_info.value.details["unknown_ids"] == ["x"]

    def test_duplicate_rejected(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            ensure_exact_permutation(["a", "b"], ["a", "a", "b"])
        assert exc_info.value.details["duplicate_ids"] == ["a"]
