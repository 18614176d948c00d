"""WorkflowDefinition repository. Returns application DTOs."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.workflow import DEFINITION_FIELDS, WorkflowDefinitionResult
from app.domain.enums import TriggerType
from app.infrastructure.persistence.models.workflow import WorkflowDefinition
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.utils.datetime import ensure_utc


def _definition_to_result(w: WorkflowDefinition) -> WorkflowDefinitionResult:
    """Map WorkflowDefinition ORM to WorkflowDefinitionResult."""
    return WorkflowDefinitionResult(
        id=w.id,
        tenant_id=w.tenant_id,
        name=w.name,
        description=w.description,
        trigger_type=w.trigger_type,
        trigger_config=dict(w.trigger_config or {}),
        conditions=list(w.conditions or []),
        actions=list(w.actions or []),
        is_active=w.is_active,
        run_count=w.run_count,
        last_run_at=ensure_utc(w.last_run_at),
        created_by=w.created_by,
        updated_by=w.updated_by,
        created_at=ensure_utc(w.created_at),
        updated_at=ensure_utc(w.updated_at),
    )


class WorkflowDefinitionRepository(BaseRepository[WorkflowDefinition]):
    """Workflow definition repository. All access tenant-scoped via parameters."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowDefinition)

    async def get_by_id(
        self, workflow_id: str, tenant_id: str
    ) -> WorkflowDefinitionResult | None:
        """Return definition by ID if it belongs to tenant."""
        row = await self._get_entity(workflow_id, tenant_id)
        return _definition_to_result(row) if row else None

    async def get_by_tenant(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        include_inactive: bool = False,
    ) -> list[WorkflowDefinitionResult]:
        q = select(WorkflowDefinition).where(WorkflowDefinition.tenant_id == tenant_id)
        if not include_inactive:
            q = q.where(WorkflowDefinition.is_active.is_(True))
        q = (
            q.order_by(WorkflowDefinition.created_at.desc(), WorkflowDefinition.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(q)
        return [_definition_to_result(w) for w in result.scalars().all()]

    async def get_active_table_event_definitions(
        self, tenant_id: str
    ) -> list[WorkflowDefinitionResult]:
        """Return matching candidates: active table_event definitions of one tenant."""
        result = await self.db.execute(
            select(WorkflowDefinition)
            .where(
                WorkflowDefinition.tenant_id == tenant_id,
                WorkflowDefinition.is_active.is_(True),
                WorkflowDefinition.trigger_type == TriggerType.TABLE_EVENT.value,
            )
            .order_by(WorkflowDefinition.created_at.asc(), WorkflowDefinition.id)
        )
        return [_definition_to_result(w) for w in result.scalars().all()]

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
        """Create definition; return created result."""
        workflow = WorkflowDefinition(
            tenant_id=tenant_id,
            name=name,
            description=description,
            trigger_type=trigger_type,
            trigger_config=trigger_config,
            conditions=conditions,
            actions=actions,
            is_active=is_active,
            created_by=actor_id,
            updated_by=actor_id,
        )
        workflow = await self.create(workflow)
        return _definition_to_result(workflow)

    async def update_definition(
        self,
        workflow_id: str,
        tenant_id: str,
        changes: dict[str, Any],
        actor_id: str | None,
    ) -> WorkflowDefinitionResult | None:
        """Apply definition field changes; return updated result or None if not found."""
        workflow = await self._get_entity(workflow_id, tenant_id)
        if not workflow:
            return None
        for field in DEFINITION_FIELDS:
            if field in changes:
                setattr(workflow, field, changes[field])
        workflow.updated_by = actor_id
        workflow = await self.update(workflow)
        return _definition_to_result(workflow)

    async def lock_for_update(self, workflow_id: str, tenant_id: str) -> bool:
        """SELECT ... FOR UPDATE on PostgreSQL so version writers serialize."""
        row = await self._get_entity(workflow_id, tenant_id, for_update=True)
        return row is not None

    async def record_run(self, workflow_id: str, tenant_id: str, at: datetime) -> None:
        """Atomic run_count + 1 and last_run_at, inside a savepoint.

        updated_at is carried over so telemetry does not look like an edit.
        """
        async with self.db.begin_nested():
            await self.db.execute(
                update(WorkflowDefinition)
                .where(
                    WorkflowDefinition.id == workflow_id,
                    WorkflowDefinition.tenant_id == tenant_id,
                )
                .values(
                    run_count=WorkflowDefinition.run_count + 1,
                    last_run_at=at,
                    updated_at=WorkflowDefinition.updated_at,
                )
                .execution_options(synchronize_session=False)
            )
