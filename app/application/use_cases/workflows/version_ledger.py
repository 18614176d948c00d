"""Version ledger: append-only history of workflow definitions, compare, restore."""

from __future__ import annotations

from dataclasses import replace

from app.application.dtos.workflow import (
    VersionComparison,
    VersionStats,
    WorkflowDefinitionResult,
    WorkflowVersionResult,
)
from app.application.interfaces.repositories import (
    IWorkflowDefinitionRepository,
    IWorkflowVersionRepository,
)
from app.application.services.version_diff import (
    build_change_summary,
    changed_values,
    compute_change_details,
)
from app.application.use_cases.workflows.workflow_registry import WorkflowRegistry
from app.domain.exceptions import ResourceNotFoundException, VersionConflictException
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class VersionLedger:
    """Records one immutable snapshot per registry write and serves history queries."""

    def __init__(
        self,
        version_repo: IWorkflowVersionRepository,
        workflow_repo: IWorkflowDefinitionRepository,
        *,
        max_conflict_retries: int = 5,
    ) -> None:
        self._version_repo = version_repo
        self._workflow_repo = workflow_repo
        self._max_conflict_retries = max_conflict_retries

    async def record_version(
        self, definition: WorkflowDefinitionResult, actor_id: str | None
    ) -> WorkflowVersionResult:
        """Snapshot the definition as max(version_number) + 1.

        A concurrent writer taking the same number raises
        VersionConflictException in the repository; the max is re-read and
        the insert retried up to max_conflict_retries times.
        """
        snapshot = definition.definition_fields()
        conflict: VersionConflictException | None = None
        for attempt in range(1, self._max_conflict_retries + 1):
            previous = await self._version_repo.get_latest(definition.id)
            version_number = previous.version_number + 1 if previous else 1
            details = compute_change_details(
                previous.definition_fields() if previous else None, snapshot
            )
            summary = build_change_summary(details, is_initial=previous is None)
            try:
                return await self._version_repo.create_version(
                    workflow_id=definition.id,
                    tenant_id=definition.tenant_id,
                    version_number=version_number,
                    snapshot=snapshot,
                    change_summary=summary,
                    change_details=details,
                    actor_id=actor_id,
                )
            except VersionConflictException as e:
                conflict = e
                logger.warning(
                    "Version conflict for workflow %s at version %s (attempt %s/%s)",
                    definition.id,
                    version_number,
                    attempt,
                    self._max_conflict_retries,
                )
        assert conflict is not None
        raise conflict

    async def _ensure_workflow(self, tenant_id: str, workflow_id: str) -> None:
        if not await self._workflow_repo.get_by_id(workflow_id, tenant_id):
            raise ResourceNotFoundException("workflow", workflow_id)

    async def list_versions(
        self, tenant_id: str, workflow_id: str, skip: int = 0, limit: int = 100
    ) -> list[WorkflowVersionResult]:
        """Return versions newest first; NotFound if the workflow is not in tenant."""
        await self._ensure_workflow(tenant_id, workflow_id)
        return await self._version_repo.list_versions(
            workflow_id, tenant_id, skip=skip, limit=limit
        )

    async def get_version(
        self, tenant_id: str, workflow_id: str, version_number: int
    ) -> WorkflowVersionResult:
        version = await self._version_repo.get_version(
            workflow_id, tenant_id, version_number
        )
        if not version:
            raise ResourceNotFoundException(
                "workflow_version", f"{workflow_id}@{version_number}"
            )
        return version

    async def compare(
        self, tenant_id: str, workflow_id: str, version_a: int, version_b: int
    ) -> VersionComparison:
        """Flag tracked fields that differ between two versions.

        The flagged set does not depend on argument order; from/to values are
        labelled by it.
        """
        a = await self.get_version(tenant_id, workflow_id, version_a)
        b = await self.get_version(tenant_id, workflow_id, version_b)
        details = compute_change_details(a.definition_fields(), b.definition_fields())
        return VersionComparison(
            workflow_id=workflow_id,
            from_version=version_a,
            to_version=version_b,
            changes=details,
            changed_fields=[f for f, changed in details.items() if changed],
            from_values=changed_values(a.definition_fields(), details),
            to_values=changed_values(b.definition_fields(), details),
        )

    async def stats(self, tenant_id: str, workflow_id: str) -> VersionStats:
        await self._ensure_workflow(tenant_id, workflow_id)
        return await self._version_repo.get_stats(workflow_id, tenant_id)


class RestoreWorkflowVersionUseCase:
    """Restores a past version by writing its fields as a new version."""

    def __init__(
        self,
        registry: WorkflowRegistry,
        ledger: VersionLedger,
        version_repo: IWorkflowVersionRepository,
    ) -> None:
        self._registry = registry
        self._ledger = ledger
        self._version_repo = version_repo

    async def execute(
        self,
        tenant_id: str,
        workflow_id: str,
        version_number: int,
        actor_id: str | None,
    ) -> tuple[WorkflowDefinitionResult, WorkflowVersionResult]:
        """Copy version N onto the live definition; the new version points back at N.

        Raises:
            ResourceNotFoundException: If workflow or version not found in tenant.
        """
        target = await self._ledger.get_version(tenant_id, workflow_id, version_number)
        definition, version = await self._registry.replace_definition(
            tenant_id, workflow_id, target.definition_fields(), actor_id
        )
        await self._version_repo.set_restored_from(version.id, version_number)
        logger.info(
            "Workflow %s (tenant_id=%s) restored from version %s as version %s",
            workflow_id,
            tenant_id,
            version_number,
            version.version_number,
        )
        return definition, replace(version, restored_from_version=version_number)
