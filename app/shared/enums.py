"""Shared enumerations for the workflow automation engine.

Cross-cutting enums used by application and infrastructure (execution and
dead-letter lifecycles, mutation operations). Definition-level enums used
by value objects (trigger type, condition operators, action kinds) live in
app.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class MutationOperation(_ValuesMixin, str, Enum):
    """Row-level mutation reported by the host datastore."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class WorkflowExecutionStatus(_ValuesMixin, str, Enum):
    """Workflow execution lifecycle status.

    queued -> running -> succeeded | failed; failed goes back to queued
    while retries remain, otherwise to dead_letter (terminal for the row).
    """

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DEAD_LETTER = "dead_letter"


class DeadLetterStatus(_ValuesMixin, str, Enum):
    """Dead-letter entry status."""

    FAILED = "failed"
    RETRYING = "retrying"
    RESOLVED = "resolved"


class ExecutionErrorType(_ValuesMixin, str, Enum):
    """Classification of why an execution attempt failed (stored on DLQ entries)."""

    ACTION_FAILED = "ActionFailed"
    ACTION_EXCEPTION = "ActionException"
    ACTION_TIMEOUT = "ActionTimeout"
    EXECUTOR_NOT_FOUND = "ExecutorNotFound"
    CLAIM_EXPIRED = "ClaimExpired"
    WORKFLOW_NOT_FOUND = "WorkflowNotFound"
