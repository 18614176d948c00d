"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
Every read and write is tenant-scoped by parameter except the runner-side
execution methods, which operate on an already claimed row id.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.execution import DeadLetterResult, WorkflowExecutionResult
    from app.application.dtos.workflow import (
        VersionStats,
        WorkflowDefinitionResult,
        WorkflowVersionResult,
    )


# Workflow definition repository interface
class IWorkflowDefinitionRepository(Protocol):
    """Protocol for workflow definition persistence (the registry's store)."""

    async def get_by_id(
        self, workflow_id: str, tenant_id: str
    ) -> WorkflowDefinitionResult | None:
        """Return definition by id if it belongs to tenant."""

    async def get_by_tenant(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        include_inactive: bool = False,
    ) -> list[WorkflowDefinitionResult]:
        """Return definitions for tenant (paginated)."""

    async def get_active_table_event_definitions(
        self, tenant_id: str
    ) -> list[WorkflowDefinitionResult]:
        """Return active table_event definitions for tenant (matching candidates)."""

    async def create_definition(
        self,
        tenant_id: str,
        *,
        name: str,
        description: str | None,
        trigger_type: str,
        trigger_config: dict[str, Any],
        conditions: list[dict[str, Any]],
        actions: list[dict[str, Any]],
        is_active: bool,
        actor_id: str | None,
    ) -> WorkflowDefinitionResult:
        """Insert a definition and return it."""

    async def update_definition(
        self,
        workflow_id: str,
        tenant_id: str,
        changes: dict[str, Any],
        actor_id: str | None,
    ) -> WorkflowDefinitionResult | None:
        """Apply changes to a definition; None if not found in tenant."""

    async def lock_for_update(self, workflow_id: str, tenant_id: str) -> bool:
        """Row-lock the definition for the current transaction; False if not found."""

    async def record_run(self, workflow_id: str, tenant_id: str, at: datetime) -> None:
        """Increment run_count and stamp last_run_at (best-effort telemetry)."""


# Workflow version repository interface
class IWorkflowVersionRepository(Protocol):
    """Protocol for the append-only version ledger store."""

    async def get_latest(self, workflow_id: str) -> WorkflowVersionResult | None:
        """Return the highest-numbered version for workflow."""

    async def get_version(
        self, workflow_id: str, tenant_id: str, version_number: int
    ) -> WorkflowVersionResult | None:
        """Return one version of a tenant's workflow."""

    async def list_versions(
        self, workflow_id: str, tenant_id: str, skip: int = 0, limit: int = 100
    ) -> list[WorkflowVersionResult]:
        """Return versions newest first."""

    async def create_version(
        self,
        *,
        workflow_id: str,
        tenant_id: str,
        version_number: int,
        snapshot: dict[str, Any],
        change_summary: str,
        change_details: dict[str, bool],
        actor_id: str | None,
    ) -> WorkflowVersionResult:
        """Insert a version; raise VersionConflictException if the number is taken."""

    async def set_restored_from(self, version_id: str, restored_from_version: int) -> None:
        """Stamp restored_from_version on a freshly created version."""

    async def get_stats(self, workflow_id: str, tenant_id: str) -> VersionStats:
        """Return count, latest number, last change time, and restore count."""


# Workflow execution repository interface
class IWorkflowExecutionRepository(Protocol):
    """Protocol for the execution queue store."""

    async def enqueue(
        self,
        *,
        tenant_id: str,
        workflow_id: str,
        workflow_version: int | None,
        trigger_data: dict[str, Any],
        idempotency_key: str | None = None,
        retried_from_dead_letter_id: str | None = None,
    ) -> WorkflowExecutionResult | None:
        """Insert a queued execution; None if idempotency_key already exists for workflow."""

    async def get_by_id(
        self, execution_id: str, tenant_id: str
    ) -> WorkflowExecutionResult | None:
        """Return execution by id if it belongs to tenant."""

    async def get_by_workflow(
        self, workflow_id: str, tenant_id: str, skip: int = 0, limit: int = 100
    ) -> list[WorkflowExecutionResult]:
        """Return executions for a workflow, newest first."""

    async def claim_next(
        self, worker_id: str, visibility_timeout_seconds: float
    ) -> WorkflowExecutionResult | None:
        """Atomically move the oldest claimable queued execution to running."""

    async def extend_claim(
        self, execution_id: str, worker_id: str, visibility_timeout_seconds: float
    ) -> bool:
        """Push claim_expires_at out; False if worker_id no longer holds the running claim."""

    async def mark_succeeded(
        self, execution_id: str, worker_id: str, execution_log: list[dict[str, Any]]
    ) -> bool:
        """running -> succeeded if worker still holds the claim."""

    async def mark_failed(
        self,
        execution_id: str,
        worker_id: str | None,
        *,
        last_error: str,
        error_details: dict[str, Any],
        execution_log: list[dict[str, Any]],
        expired_before: datetime | None = None,
    ) -> WorkflowExecutionResult | None:
        """running -> failed if the claim is held (or expired before the given time)."""

    async def requeue(
        self, execution_id: str, retry_count: int, available_at: datetime
    ) -> bool:
        """failed -> queued with new retry_count and backoff."""

    async def mark_dead_letter(self, execution_id: str) -> bool:
        """failed -> dead_letter."""

    async def get_expired_claims(self, limit: int = 100) -> list[WorkflowExecutionResult]:
        """Return running executions whose claim has expired."""


# Dead-letter repository interface
class IDeadLetterRepository(Protocol):
    """Protocol for the dead-letter store."""

    async def create_entry(
        self,
        *,
        execution: WorkflowExecutionResult,
        error_type: str,
        error_message: str,
        error_details: dict[str, Any],
        total_attempts: int,
        last_attempt_at: datetime,
    ) -> DeadLetterResult | None:
        """Create the entry for an execution; None if one already exists."""

    async def get_by_id(self, entry_id: str, tenant_id: str) -> DeadLetterResult | None:
        """Return entry by id if it belongs to tenant."""

    async def get_by_execution(self, execution_id: str) -> DeadLetterResult | None:
        """Return the entry created for an execution, if any."""

    async def get_by_tenant(
        self,
        tenant_id: str,
        status: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[DeadLetterResult]:
        """Return entries newest first, optionally filtered by status."""

    async def mark_retrying(
        self,
        entry_id: str,
        tenant_id: str,
        *,
        actor_id: str,
        at: datetime,
        retry_execution_id: str,
    ) -> DeadLetterResult | None:
        """failed -> retrying with manual retry fields; None unless the entry was failed."""

    async def mark_resolved(
        self,
        entry_id: str,
        tenant_id: str,
        *,
        actor_id: str,
        at: datetime,
        notes: str | None,
    ) -> DeadLetterResult | None:
        """Set status=resolved and stamp resolution fields."""

    async def count_by_status(self, tenant_id: str) -> dict[str, int]:
        """Return {status: count} for tenant."""
