"""DeadLetterEntry repository. Returns application DTOs."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.execution import DeadLetterResult, WorkflowExecutionResult
from app.infrastructure.persistence.models.dead_letter import DeadLetterEntry
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.enums import DeadLetterStatus
from app.shared.utils.datetime import ensure_utc


def _entry_to_result(d: DeadLetterEntry) -> DeadLetterResult:
    """Map DeadLetterEntry ORM to DeadLetterResult."""
    return DeadLetterResult(
        id=d.id,
        tenant_id=d.tenant_id,
        workflow_execution_id=d.workflow_execution_id,
        workflow_id=d.workflow_id,
        trigger_data=dict(d.trigger_data or {}),
        execution_log=list(d.execution_log or []),
        error_type=d.error_type,
        error_message=d.error_message,
        error_details=dict(d.error_details or {}),
        total_attempts=d.total_attempts,
        first_failed_at=ensure_utc(d.first_failed_at),
        last_attempt_at=ensure_utc(d.last_attempt_at),
        status=d.status,
        manual_retry_requested_by=d.manual_retry_requested_by,
        manual_retry_requested_at=ensure_utc(d.manual_retry_requested_at),
        retry_execution_id=d.retry_execution_id,
        resolved_by=d.resolved_by,
        resolved_at=ensure_utc(d.resolved_at),
        resolution_notes=d.resolution_notes,
        created_at=ensure_utc(d.created_at),
    )


class DeadLetterRepository(BaseRepository[DeadLetterEntry]):
    """Dead-letter store. One entry per execution (unique workflow_execution_id)."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, DeadLetterEntry)

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
        """Copy the execution's context into a new entry; None if one already exists."""
        if await self.get_by_execution(execution.id) is not None:
            return None
        entry = DeadLetterEntry(
            tenant_id=execution.tenant_id,
            workflow_execution_id=execution.id,
            workflow_id=execution.workflow_id,
            trigger_data=execution.trigger_data,
            execution_log=execution.execution_log,
            error_type=error_type,
            error_message=error_message,
            error_details=error_details,
            total_attempts=total_attempts,
            first_failed_at=execution.created_at,
            last_attempt_at=last_attempt_at,
            status=DeadLetterStatus.FAILED.value,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(entry)
                await self.db.flush()
        except IntegrityError:
            return None
        await self.db.refresh(entry)
        return _entry_to_result(entry)

    async def get_by_id(self, entry_id: str, tenant_id: str) -> DeadLetterResult | None:
        """Return entry by ID if it belongs to tenant."""
        row = await self._get_entity(entry_id, tenant_id)
        return _entry_to_result(row) if row else None

    async def get_by_execution(self, execution_id: str) -> DeadLetterResult | None:
        result = await self.db.execute(
            select(DeadLetterEntry).where(
                DeadLetterEntry.workflow_execution_id == execution_id
            )
        )
        row = result.scalar_one_or_none()
        return _entry_to_result(row) if row else None

    async def get_by_tenant(
        self,
        tenant_id: str,
        status: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[DeadLetterResult]:
        q = select(DeadLetterEntry).where(DeadLetterEntry.tenant_id == tenant_id)
        if status is not None:
            q = q.where(DeadLetterEntry.status == status)
        q = (
            q.order_by(DeadLetterEntry.created_at.desc(), DeadLetterEntry.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(q)
        return [_entry_to_result(d) for d in result.scalars().all()]

    async def mark_retrying(
        self,
        entry_id: str,
        tenant_id: str,
        *,
        actor_id: str,
        at: datetime,
        retry_execution_id: str,
    ) -> DeadLetterResult | None:
        """failed -> retrying; None when the entry is missing or no longer failed."""
        result = await self.db.execute(
            update(DeadLetterEntry)
            .where(
                DeadLetterEntry.id == entry_id,
                DeadLetterEntry.tenant_id == tenant_id,
                DeadLetterEntry.status == DeadLetterStatus.FAILED.value,
            )
            .values(
                status=DeadLetterStatus.RETRYING.value,
                manual_retry_requested_by=actor_id,
                manual_retry_requested_at=at,
                retry_execution_id=retry_execution_id,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        entry = await self._get_entity(entry_id, tenant_id)
        return _entry_to_result(entry) if entry else None

    async def mark_resolved(
        self,
        entry_id: str,
        tenant_id: str,
        *,
        actor_id: str,
        at: datetime,
        notes: str | None,
    ) -> DeadLetterResult | None:
        entry = await self._get_entity(entry_id, tenant_id, for_update=True)
        if not entry:
            return None
        entry.status = DeadLetterStatus.RESOLVED.value
        entry.resolved_by = actor_id
        entry.resolved_at = at
        entry.resolution_notes = notes
        entry = await self.update(entry)
        return _entry_to_result(entry)

    async def count_by_status(self, tenant_id: str) -> dict[str, int]:
        result = await self.db.execute(
            select(DeadLetterEntry.status, func.count(DeadLetterEntry.id))
            .where(DeadLetterEntry.tenant_id == tenant_id)
            .group_by(DeadLetterEntry.status)
        )
        return {status: count for status, count in result.all()}
