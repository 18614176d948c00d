"""DTOs for workflow executions, action results, and dead-letter entries."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ActionResult:
    """Outcome reported by an action executor."""

    success: bool
    error: str | None = None
    output: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **output: Any) -> "ActionResult":
        return cls(success=True, output=output)

    @classmethod
    def failed(cls, error: str, **output: Any) -> "ActionResult":
        return cls(success=False, error=error, output=output)


@dataclass(frozen=True)
class WorkflowExecutionResult:
    """Workflow execution read-model."""

    id: str
    tenant_id: str
    workflow_id: str
    workflow_version: int | None
    status: str
    trigger_data: dict[str, Any]
    retry_count: int
    last_error: str | None
    error_details: dict[str, Any] | None
    execution_log: list[dict[str, Any]]
    available_at: datetime
    claimed_by: str | None
    claim_expires_at: datetime | None
    started_at: datetime | None
    completed_at: datetime | None
    idempotency_key: str | None
    retried_from_dead_letter_id: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class DeadLetterResult:
    """Dead-letter entry read-model with full diagnostic context."""

    id: str
    tenant_id: str
    workflow_execution_id: str
    workflow_id: str
    trigger_data: dict[str, Any]
    execution_log: list[dict[str, Any]]
    error_type: str
    error_message: str
    error_details: dict[str, Any]
    total_attempts: int
    first_failed_at: datetime
    last_attempt_at: datetime
    status: str
    manual_retry_requested_by: str | None
    manual_retry_requested_at: datetime | None
    retry_execution_id: str | None
    resolved_by: str | None
    resolved_at: datetime | None
    resolution_notes: str | None
    created_at: datetime


@dataclass(frozen=True)
class DeadLetterSummary:
    """Count of dead-letter entries per status for one tenant."""

    tenant_id: str
    counts: dict[str, int]

    @property
    def total(self) -> int:
        return sum(self.counts.values())
