"""Retry and dead-letter handling for failed workflow executions."""

from __future__ import annotations

from enum import Enum

from app.application.dtos.execution import (
    DeadLetterResult,
    DeadLetterSummary,
    WorkflowExecutionResult,
)
from app.application.interfaces.repositories import (
    IDeadLetterRepository,
    IWorkflowDefinitionRepository,
    IWorkflowExecutionRepository,
    IWorkflowVersionRepository,
)
from app.application.services.retry_policy import RetryPolicy
from app.domain.exceptions import (
    InvalidStateTransitionException,
    ResourceNotFoundException,
    ValidationException,
)
from app.shared.enums import DeadLetterStatus, ExecutionErrorType, WorkflowExecutionStatus
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_after, utc_now

logger = get_logger(__name__)


class FailureOutcome(str, Enum):
    """What happened to a failed execution."""

    REQUEUED = "requeued"
    DEAD_LETTERED = "dead_lettered"
    SKIPPED = "skipped"


class DeadLetterHandler:
    """Decides retry vs dead-letter, and serves manual dead-letter operations."""

    def __init__(
        self,
        execution_repo: IWorkflowExecutionRepository,
        dead_letter_repo: IDeadLetterRepository,
        workflow_repo: IWorkflowDefinitionRepository,
        version_repo: IWorkflowVersionRepository,
        policy: RetryPolicy,
    ) -> None:
        self._execution_repo = execution_repo
        self._dead_letter_repo = dead_letter_repo
        self._workflow_repo = workflow_repo
        self._version_repo = version_repo
        self._policy = policy

    async def handle_failure(self, execution: WorkflowExecutionResult) -> FailureOutcome:
        """Requeue with backoff, or dead-letter once retries are exhausted.

        execution must be in status failed (as returned by mark_failed).
        """
        if execution.status != WorkflowExecutionStatus.FAILED.value:
            logger.warning(
                "Failure handling skipped: execution %s is %s, not failed",
                execution.id,
                execution.status,
            )
            return FailureOutcome.SKIPPED

        if self._policy.should_retry(execution.retry_count):
            retry_count = execution.retry_count + 1
            delay = self._policy.backoff_seconds(retry_count)
            if not await self._execution_repo.requeue(
                execution.id, retry_count, utc_after(delay)
            ):
                logger.warning("Requeue lost for execution %s", execution.id)
                return FailureOutcome.SKIPPED
            logger.info(
                "Execution %s (workflow %s, tenant_id=%s) requeued: retry %s/%s in %.1fs",
                execution.id,
                execution.workflow_id,
                execution.tenant_id,
                retry_count,
                self._policy.max_retries,
                delay,
            )
            return FailureOutcome.REQUEUED

        return await self._dead_letter(execution)

    async def _dead_letter(self, execution: WorkflowExecutionResult) -> FailureOutcome:
        # Conditional failed -> dead_letter first: only one handler gets here per execution.
        if not await self._execution_repo.mark_dead_letter(execution.id):
            logger.warning(
                "Dead-letter skipped: execution %s already left failed state",
                execution.id,
            )
            return FailureOutcome.SKIPPED

        details = dict(execution.error_details or {})
        error_type = details.get("error_type") or ExecutionErrorType.ACTION_FAILED.value
        details["attempts_including_initial"] = execution.retry_count + 1
        entry = await self._dead_letter_repo.create_entry(
            execution=execution,
            error_type=error_type,
            error_message=execution.last_error or "",
            error_details=details,
            total_attempts=execution.retry_count,
            last_attempt_at=utc_now(),
        )
        if entry is None:
            logger.warning("Dead-letter entry already exists for execution %s", execution.id)
        else:
            logger.error(
                "Execution %s (workflow %s, tenant_id=%s) dead-lettered after %s attempts: %s",
                execution.id,
                execution.workflow_id,
                execution.tenant_id,
                execution.retry_count + 1,
                execution.last_error,
            )
        return FailureOutcome.DEAD_LETTERED

    async def get(self, tenant_id: str, entry_id: str) -> DeadLetterResult:
        entry = await self._dead_letter_repo.get_by_id(entry_id, tenant_id)
        if not entry:
            raise ResourceNotFoundException("dead_letter_entry", entry_id)
        return entry

    async def list(
        self,
        tenant_id: str,
        status: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[DeadLetterResult]:
        if status is not None and status not in DeadLetterStatus.values():
            raise ValidationException(
                f"status must be one of {DeadLetterStatus.values()}", field="status"
            )
        return await self._dead_letter_repo.get_by_tenant(
            tenant_id, status=status, skip=skip, limit=limit
        )

    async def summary(self, tenant_id: str) -> DeadLetterSummary:
        counts = {status: 0 for status in DeadLetterStatus.values()}
        counts.update(await self._dead_letter_repo.count_by_status(tenant_id))
        return DeadLetterSummary(tenant_id=tenant_id, counts=counts)

    async def retry_from_dead_letter(
        self, tenant_id: str, entry_id: str, actor_id: str
    ) -> WorkflowExecutionResult:
        """Enqueue a fresh execution from the entry's stored trigger data.

        The entry's trigger data and error fields are left untouched.

        Raises:
            ResourceNotFoundException: If entry or its workflow is not found in tenant.
            InvalidStateTransitionException: If the entry is already retrying or
                resolved, including when another caller wins the transition.
        """
        entry = await self.get(tenant_id, entry_id)
        if entry.status != DeadLetterStatus.FAILED.value:
            raise InvalidStateTransitionException(
                "dead_letter_entry", entry_id, entry.status, "retry"
            )
        if not await self._workflow_repo.get_by_id(entry.workflow_id, tenant_id):
            raise ResourceNotFoundException("workflow", entry.workflow_id)

        latest = await self._version_repo.get_latest(entry.workflow_id)
        execution = await self._execution_repo.enqueue(
            tenant_id=tenant_id,
            workflow_id=entry.workflow_id,
            workflow_version=latest.version_number if latest else None,
            trigger_data=entry.trigger_data,
            retried_from_dead_letter_id=entry.id,
        )
        # No idempotency key on manual retries, so enqueue always inserts.
        assert execution is not None
        marked = await self._dead_letter_repo.mark_retrying(
            entry_id,
            tenant_id,
            actor_id=actor_id,
            at=utc_now(),
            retry_execution_id=execution.id,
        )
        if marked is None:
            # Lost to a concurrent retry or resolve; the caller's transaction
            # rolls back the execution enqueued above.
            raise InvalidStateTransitionException(
                "dead_letter_entry", entry_id, entry.status, "retry"
            )
        logger.info(
            "Dead-letter %s retried by %s as execution %s (tenant_id=%s)",
            entry_id,
            actor_id,
            execution.id,
            tenant_id,
        )
        return execution

    async def resolve(
        self,
        tenant_id: str,
        entry_id: str,
        actor_id: str,
        notes: str | None = None,
    ) -> DeadLetterResult:
        """Mark resolved; a no-op returning the entry if already resolved."""
        entry = await self.get(tenant_id, entry_id)
        if entry.status == DeadLetterStatus.RESOLVED.value:
            return entry
        resolved = await self._dead_letter_repo.mark_resolved(
            entry_id, tenant_id, actor_id=actor_id, at=utc_now(), notes=notes
        )
        if resolved is None:
            raise ResourceNotFoundException("dead_letter_entry", entry_id)
        logger.info("Dead-letter %s resolved by %s (tenant_id=%s)", entry_id, actor_id, tenant_id)
        return resolved
