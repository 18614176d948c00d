"""Domain exceptions for the workflow automation engine.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.

MatchException and ExecutionException are raised and recovered inside the
engine (a skipped definition, a failed execution); they never reach the
event source.
"""

from typing import Any


class WorkflowEngineException(Exception):
    """Base exception for all workflow engine errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(WorkflowEngineException):
    """Raised when a definition fails validation at registry-write time."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(WorkflowEngineException):
    """Raised when a workflow, version, execution or dead-letter entry is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'workflow', 'workflow_version').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class VersionConflictException(WorkflowEngineException):
    """Raised when a version number was taken by a concurrent registry write."""

    def __init__(self, workflow_id: str, version_number: int) -> None:
        super().__init__(
            "Workflow was updated by another request; retry.",
            "VERSION_CONFLICT",
            {"workflow_id": workflow_id, "version_number": version_number},
        )


class InvalidStateTransitionException(WorkflowEngineException):
    """Raised when a lifecycle transition is not allowed from the current status."""

    def __init__(self, resource_type: str, resource_id: str, status: str, action: str) -> None:
        """Initialize with resource, current status and attempted action.

        Args:
            resource_type: Type of resource (e.g. 'dead_letter_entry').
            resource_id: Resource identifier.
            status: Current status of the resource.
            action: Transition that was attempted (e.g. 'retry').
        """
        super().__init__(
            f"Cannot {action} {resource_type} {resource_id} in status '{status}'",
            "INVALID_STATE_TRANSITION",
            {
                "resource_type": resource_type,
                "resource_id": resource_id,
                "status": status,
                "action": action,
            },
        )


class MatchException(WorkflowEngineException):
    """Raised when a definition's trigger or condition cannot be evaluated for an event."""

    def __init__(self, workflow_id: str, reason: str) -> None:
        super().__init__(
            f"Workflow {workflow_id} could not be evaluated: {reason}",
            "MATCH_ERROR",
            {"workflow_id": workflow_id, "reason": reason},
        )


class ExecutionException(WorkflowEngineException):
    """Raised when an action reports failure; drives the retry/dead-letter path."""

    def __init__(
        self,
        message: str,
        error_type: str,
        *,
        action_index: int | None = None,
        action_kind: str | None = None,
        **details_extra: Any,
    ) -> None:
        """Initialize with failure message and classification.

        Args:
            message: Human-readable failure description.
            error_type: Classified error type (see ExecutionErrorType).
            action_index: Position of the failed action in the action list.
            action_kind: Kind of the failed action.
            **details_extra: Optional keys merged into details (e.g. traceback).
        """
        self.error_type = error_type
        details = {
            "error_type": error_type,
            "action_index": action_index,
            "action_kind": action_kind,
            **details_extra,
        }
        super().__init__(message, "EXECUTION_ERROR", details)


class SqlNotConfiguredException(WorkflowEngineException):
    """Raised when an operation requires the database but it is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
