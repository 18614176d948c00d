"""WorkflowVersion repository: append-only ledger rows. Returns application DTOs."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.workflow import VersionStats, WorkflowVersionResult
from app.domain.exceptions import VersionConflictException
from app.infrastructure.persistence.models.workflow import WorkflowVersion
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.utils.datetime import ensure_utc


def _version_to_result(v: WorkflowVersion) -> WorkflowVersionResult:
    """Map WorkflowVersion ORM to WorkflowVersionResult."""
    return WorkflowVersionResult(
        id=v.id,
        workflow_id=v.workflow_id,
        tenant_id=v.tenant_id,
        version_number=v.version_number,
        name=v.name,
        description=v.description,
        trigger_type=v.trigger_type,
        trigger_config=dict(v.trigger_config or {}),
        conditions=list(v.conditions or []),
        actions=list(v.actions or []),
        is_active=v.is_active,
        change_summary=v.change_summary,
        change_details=dict(v.change_details or {}),
        created_by=v.created_by,
        created_at=ensure_utc(v.created_at),
        restored_from_version=v.restored_from_version,
    )


class WorkflowVersionRepository(BaseRepository[WorkflowVersion]):
    """Version ledger store. Rows are inserted once and never edited, except
    restored_from_version on the row a restore just created."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowVersion)

    async def get_latest(self, workflow_id: str) -> WorkflowVersionResult | None:
        result = await self.db.execute(
            select(WorkflowVersion)
            .where(WorkflowVersion.workflow_id == workflow_id)
            .order_by(WorkflowVersion.version_number.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _version_to_result(row) if row else None

    async def get_version(
        self, workflow_id: str, tenant_id: str, version_number: int
    ) -> WorkflowVersionResult | None:
        result = await self.db.execute(
            select(WorkflowVersion).where(
                WorkflowVersion.workflow_id == workflow_id,
                WorkflowVersion.tenant_id == tenant_id,
                WorkflowVersion.version_number == version_number,
            )
        )
        row = result.scalar_one_or_none()
        return _version_to_result(row) if row else None

    async def list_versions(
        self, workflow_id: str, tenant_id: str, skip: int = 0, limit: int = 100
    ) -> list[WorkflowVersionResult]:
        """Return versions newest first."""
        result = await self.db.execute(
            select(WorkflowVersion)
            .where(
                WorkflowVersion.workflow_id == workflow_id,
                WorkflowVersion.tenant_id == tenant_id,
            )
            .order_by(WorkflowVersion.version_number.desc())
            .offset(skip)
            .limit(limit)
        )
        return [_version_to_result(v) for v in result.scalars().all()]

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
        """Insert inside a savepoint so a duplicate number leaves the outer transaction usable.

        Raises:
            VersionConflictException: If (workflow_id, version_number) already exists.
        """
        version = WorkflowVersion(
            workflow_id=workflow_id,
            tenant_id=tenant_id,
            version_number=version_number,
            name=snapshot["name"],
            description=snapshot.get("description"),
            trigger_type=snapshot["trigger_type"],
            trigger_config=snapshot["trigger_config"],
            conditions=snapshot.get("conditions") or [],
            actions=snapshot["actions"],
            is_active=snapshot["is_active"],
            change_summary=change_summary,
            change_details=change_details,
            created_by=actor_id,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(version)
                await self.db.flush()
        except IntegrityError as e:
            raise VersionConflictException(workflow_id, version_number) from e
        await self.db.refresh(version)
        return _version_to_result(version)

    async def set_restored_from(self, version_id: str, restored_from_version: int) -> None:
        await self.db.execute(
            update(WorkflowVersion)
            .where(WorkflowVersion.id == version_id)
            .values(restored_from_version=restored_from_version)
            .execution_options(synchronize_session=False)
        )

    async def get_stats(self, workflow_id: str, tenant_id: str) -> VersionStats:
        result = await self.db.execute(
            select(
                func.count(WorkflowVersion.id),
                func.max(WorkflowVersion.version_number),
                func.max(WorkflowVersion.created_at),
                func.count(WorkflowVersion.restored_from_version),
            ).where(
                WorkflowVersion.workflow_id == workflow_id,
                WorkflowVersion.tenant_id == tenant_id,
            )
        )
        total, latest, last_changed, restores = result.one()
        return VersionStats(
            workflow_id=workflow_id,
            total_versions=total or 0,
            latest_version=latest,
            last_changed_at=ensure_utc(last_changed),
            restore_count=restores or 0,
        )
