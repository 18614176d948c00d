"""Workflow API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WorkflowCreateRequest(BaseModel):
    """Request body for creating a workflow.

    trigger_config, conditions, and actions are validated by the registry
    (400 VALIDATION_ERROR) so their shape errors name the offending field.
    """

    name: str = Field(..., min_length=1, max_length=255)
    trigger_type: str = Field(..., min_length=1, max_length=32)
    trigger_config: dict[str, Any] = Field(default_factory=dict)
    actions: list[dict[str, Any]] = Field(default_factory=list)
    conditions: list[dict[str, Any]] = Field(default_factory=list)
    description: str | None = None
    is_active: bool = True


class WorkflowUpdate(BaseModel):
    """Request body for updating a workflow (partial). Empty description clears it."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    trigger_type: str | None = Field(default=None, min_length=1, max_length=32)
    trigger_config: dict[str, Any] | None = None
    conditions: list[dict[str, Any]] | None = None
    actions: list[dict[str, Any]] | None = None
    is_active: bool | None = None
    tenant_id: str | None = Field(
        default=None, description="Rejected if it differs from the current tenant"
    )


class WorkflowActiveRequest(BaseModel):
    """Request body for PUT /workflows/{id}/active."""

    is_active: bool


class WorkflowRunRequest(BaseModel):
    """Request body for a manual run; payload is stored as trigger_data.payload."""

    payload: dict[str, Any] = Field(default_factory=dict)


class WorkflowResponse(BaseModel):
    """Workflow response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    name: str
    description: str | None
    trigger_type: str
    trigger_config: dict[str, Any]
    conditions: list[dict[str, Any]]
    actions: list[dict[str, Any]]
    is_active: bool
    run_count: int
    last_run_at: datetime | None
    created_by: str | None
    updated_by: str | None
    created_at: datetime
    updated_at: datetime


class WorkflowVersionResponse(BaseModel):
    """Immutable workflow version snapshot."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow_id: str
    tenant_id: str
    version_number: int
    name: str
    description: str | None
    trigger_type: str
    trigger_config: dict[str, Any]
    conditions: list[dict[str, Any]]
    actions: list[dict[str, Any]]
    is_active: bool
    change_summary: str
    change_details: dict[str, bool]
    created_by: str | None
    created_at: datetime
    restored_from_version: int | None


class WorkflowRestoreResponse(BaseModel):
    """Live definition after restore plus the version the restore created."""

    workflow: WorkflowResponse
    version: WorkflowVersionResponse


class VersionComparisonResponse(BaseModel):
    """Differences between two versions (values only for changed fields)."""

    model_config = ConfigDict(from_attributes=True)

    workflow_id: str
    from_version: int
    to_version: int
    changes: dict[str, bool]
    changed_fields: list[str]
    from_values: dict[str, Any]
    to_values: dict[str, Any]


class VersionStatsResponse(BaseModel):
    """Version history summary."""

    model_config = ConfigDict(from_attributes=True)

    workflow_id: str
    total_versions: int
    latest_version: int | None
    last_changed_at: datetime | None
    restore_count: int


class WorkflowExecutionResponse(BaseModel):
    """Workflow execution response."""

    model_config = ConfigDict(from_attributes=True)

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
