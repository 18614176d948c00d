"""WorkflowExecution repository: the execution queue. Returns application DTOs.

State changes are conditional UPDATEs keyed on the expected current status
(and claim holder), so concurrent runners, the reaper, and failure handling
never apply a transition twice; rowcount tells the caller whether it won.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.execution import WorkflowExecutionResult
from app.infrastructure.persistence.models.workflow_execution import WorkflowExecution
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.enums import WorkflowExecutionStatus
from app.shared.utils.datetime import ensure_utc, utc_after, utc_now

# Candidates tried per claim call before reporting an empty queue.
_CLAIM_ATTEMPTS = 3


def _execution_to_result(e: WorkflowExecution) -> WorkflowExecutionResult:
    """Map WorkflowExecution ORM to WorkflowExecutionResult."""
    return WorkflowExecutionResult(
        id=e.id,
        tenant_id=e.tenant_id,
        workflow_id=e.workflow_id,
        workflow_version=e.workflow_version,
        status=e.status,
        trigger_data=dict(e.trigger_data or {}),
        retry_count=e.retry_count,
        last_error=e.last_error,
        error_details=dict(e.error_details) if e.error_details is not None else None,
        execution_log=list(e.execution_log or []),
        available_at=ensure_utc(e.available_at),
        claimed_by=e.claimed_by,
        claim_expires_at=ensure_utc(e.claim_expires_at),
        started_at=ensure_utc(e.started_at),
        completed_at=ensure_utc(e.completed_at),
        idempotency_key=e.idempotency_key,
        retried_from_dead_letter_id=e.retried_from_dead_letter_id,
        created_at=ensure_utc(e.created_at),
        updated_at=ensure_utc(e.updated_at),
    )


class WorkflowExecutionRepository(BaseRepository[WorkflowExecution]):
    """Execution queue store. Reads are tenant-scoped; runner transitions act on claimed ids."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowExecution)

    async def _transition(self, execution_id: str, *criteria: Any, **values: Any) -> bool:
        result = await self.db.execute(
            update(WorkflowExecution)
            .where(WorkflowExecution.id == execution_id, *criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _reload(self, execution_id: str) -> WorkflowExecutionResult | None:
        row = await self._get_entity(execution_id)
        return _execution_to_result(row) if row else None

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
        """Insert a queued execution; None when the idempotency key was already used."""
        if idempotency_key is not None:
            existing = await self.db.execute(
                select(WorkflowExecution.id).where(
                    WorkflowExecution.workflow_id == workflow_id,
                    WorkflowExecution.idempotency_key == idempotency_key,
                )
            )
            if existing.scalar_one_or_none() is not None:
                return None
        execution = WorkflowExecution(
            tenant_id=tenant_id,
            workflow_id=workflow_id,
            workflow_version=workflow_version,
            status=WorkflowExecutionStatus.QUEUED.value,
            trigger_data=trigger_data,
            retry_count=0,
            execution_log=[],
            available_at=utc_now(),
            idempotency_key=idempotency_key,
            retried_from_dead_letter_id=retried_from_dead_letter_id,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(execution)
                await self.db.flush()
        except IntegrityError:
            if idempotency_key is None:
                raise
            return None
        await self.db.refresh(execution)
        return _execution_to_result(execution)

    async def get_by_id(
        self, execution_id: str, tenant_id: str
    ) -> WorkflowExecutionResult | None:
        """Return execution by ID if it belongs to tenant."""
        row = await self._get_entity(execution_id, tenant_id)
        return _execution_to_result(row) if row else None

    async def get_by_workflow(
        self, workflow_id: str, tenant_id: str, skip: int = 0, limit: int = 100
    ) -> list[WorkflowExecutionResult]:
        result = await self.db.execute(
            select(WorkflowExecution)
            .where(
                WorkflowExecution.workflow_id == workflow_id,
                WorkflowExecution.tenant_id == tenant_id,
            )
            .order_by(WorkflowExecution.created_at.desc(), WorkflowExecution.id)
            .offset(skip)
            .limit(limit)
        )
        return [_execution_to_result(e) for e in result.scalars().all()]

    async def claim_next(
        self, worker_id: str, visibility_timeout_seconds: float
    ) -> WorkflowExecutionResult | None:
        """Claim the oldest queued execution whose available_at has passed.

        On PostgreSQL the candidate select uses FOR UPDATE SKIP LOCKED; on
        every backend the status-guarded UPDATE decides the winner.
        """
        now = utc_now()
        for _ in range(_CLAIM_ATTEMPTS):
            q = (
                select(WorkflowExecution.id)
                .where(
                    WorkflowExecution.status == WorkflowExecutionStatus.QUEUED.value,
                    WorkflowExecution.available_at <= now,
                )
                .order_by(WorkflowExecution.available_at.asc(), WorkflowExecution.created_at.asc())
                .limit(1)
            )
            if self.supports_row_locks:
                q = q.with_for_update(skip_locked=True)
            candidate_id = (await self.db.execute(q)).scalar_one_or_none()
            if candidate_id is None:
                return None
            claimed = await self._transition(
                candidate_id,
                WorkflowExecution.status == WorkflowExecutionStatus.QUEUED.value,
                status=WorkflowExecutionStatus.RUNNING.value,
                claimed_by=worker_id,
                started_at=now,
                claim_expires_at=utc_after(visibility_timeout_seconds, reference=now),
                completed_at=None,
            )
            if claimed:
                return await self._reload(candidate_id)
        return None

    async def extend_claim(
        self, execution_id: str, worker_id: str, visibility_timeout_seconds: float
    ) -> bool:
        return await self._transition(
            execution_id,
            WorkflowExecution.status == WorkflowExecutionStatus.RUNNING.value,
            WorkflowExecution.claimed_by == worker_id,
            claim_expires_at=utc_after(visibility_timeout_seconds),
        )

    async def mark_succeeded(
        self, execution_id: str, worker_id: str, execution_log: list[dict[str, Any]]
    ) -> bool:
        return await self._transition(
            execution_id,
            WorkflowExecution.status == WorkflowExecutionStatus.RUNNING.value,
            WorkflowExecution.claimed_by == worker_id,
            status=WorkflowExecutionStatus.SUCCEEDED.value,
            execution_log=execution_log,
            completed_at=utc_now(),
            claim_expires_at=None,
        )

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
        """running -> failed; None if the caller no longer holds the claim.

        worker_id None with expired_before is the reaper's path: any holder,
        but only once the claim has lapsed.
        """
        criteria: list[Any] = [
            WorkflowExecution.status == WorkflowExecutionStatus.RUNNING.value
        ]
        if worker_id is not None:
            criteria.append(WorkflowExecution.claimed_by == worker_id)
        if expired_before is not None:
            criteria.append(WorkflowExecution.claim_expires_at < expired_before)
        failed = await self._transition(
            execution_id,
            *criteria,
            status=WorkflowExecutionStatus.FAILED.value,
            last_error=last_error,
            error_details=error_details,
            execution_log=execution_log,
            completed_at=utc_now(),
            claim_expires_at=None,
        )
        if not failed:
            return None
        return await self._reload(execution_id)

    async def requeue(
        self, execution_id: str, retry_count: int, available_at: datetime
    ) -> bool:
        return await self._transition(
            execution_id,
            WorkflowExecution.status == WorkflowExecutionStatus.FAILED.value,
            status=WorkflowExecutionStatus.QUEUED.value,
            retry_count=retry_count,
            available_at=available_at,
            claimed_by=None,
            claim_expires_at=None,
            completed_at=None,
        )

    async def mark_dead_letter(self, execution_id: str) -> bool:
        return await self._transition(
            execution_id,
            WorkflowExecution.status == WorkflowExecutionStatus.FAILED.value,
            status=WorkflowExecutionStatus.DEAD_LETTER.value,
        )

    async def get_expired_claims(self, limit: int = 100) -> list[WorkflowExecutionResult]:
        """Return running executions whose claim_expires_at has passed (reaper input)."""
        result = await self.db.execute(
            select(WorkflowExecution)
            .where(
                WorkflowExecution.status == WorkflowExecutionStatus.RUNNING.value,
                WorkflowExecution.claim_expires_at < utc_now(),
            )
            .order_by(WorkflowExecution.claim_expires_at.asc())
            .limit(limit)
        )
        return [_execution_to_result(e) for e in result.scalars().all()]
