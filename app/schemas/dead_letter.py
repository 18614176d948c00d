"""Dead-letter queue API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.workflow import WorkflowExecutionResponse


class DeadLetterResponse(BaseModel):
    """Dead-letter entry with the failed execution's full context."""

    model_config = ConfigDict(from_attributes=True)

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


class DeadLetterSummaryResponse(BaseModel):
    """Entry counts per status for the tenant."""

    tenant_id: str
    counts: dict[str, int]
    total: int


class DeadLetterResolveRequest(BaseModel):
    """Request body for POST /dead-letters/{id}/resolve."""

    notes: str | None = Field(default=None, max_length=4000)


class DeadLetterRetryResponse(BaseModel):
    """The fresh execution queued by a manual retry."""

    dead_letter_id: str
    execution: WorkflowExecutionResponse
