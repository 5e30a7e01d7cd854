"""Domain errors raised by the hierarchy manager, aggregator and bulk coordinator.

Every error carries a stable error_code and a details dict (field names,
entity ids) that the caller can act on. The HTTP layer maps error_code to a
status; the bulk coordinator copies code, message and details into a
BulkItemFailure.
"""

from typing import Any, ClassVar


def _compact(*sources: dict[str, Any] | None, **values: Any) -> dict[str, Any]:
    """Merge keyword values (skipping None) and extra dicts into one details dict."""
    merged = {key: value for key, value in values.items() if value is not None}
    for source in sources:
        if source:
            merged.update(source)
    return merged


class TaskTrackerException(Exception):
    """Base of the domain error taxonomy.

    error_code falls back to the subclass default_code, then to the class name.
    """

    default_code: ClassVar[str | None] = None

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code or type(self).__name__
        self.details: dict[str, Any] = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message, "details": self.details}


class ValidationException(TaskTrackerException):
    """Bad input: blank title, out-of-range value, reorder set mismatch, hierarchy cycle."""

    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_compact(details, field=field))


class ResourceNotFoundException(TaskTrackerException):
    """A referenced task, subtask, user or workspace is missing or soft-deleted."""

    default_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class BusinessRuleException(TaskTrackerException):
    """A well-formed request that breaks a domain rule.

    rule names the rule, e.g. progress_derived_from_subtasks when progress is
    edited directly on a task that has live subtasks.
    """

    default_code = "BUSINESS_RULE_VIOLATION"

    def __init__(self, message: str, rule: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details=_compact(details, rule=rule))


class AuthorizationException(TaskTrackerException):
    """The acting user is neither owner nor assignee of the task."""

    default_code = "PERMISSION_DENIED"

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        super().__init__(message, details=_compact(resource=resource, action=action))


class PersistenceException(TaskTrackerException):
    """The storage collaborator failed.

    Only a generic message is exposed; the driver error is chained as
    __cause__ and logged where it is caught.
    """

    default_code = "PERSISTENCE_ERROR"

    def __init__(self, message: str = "A storage error occurred") -> None:
        super().__init__(message)
