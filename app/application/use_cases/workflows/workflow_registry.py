"""Workflow registry: create, update, activate, and query workflow definitions.

Every successful write records exactly one version through the ledger in
the caller's transaction, before returning.
"""

from __future__ import annotations

from dataclasses import fields
from typing import TYPE_CHECKING, Any

from app.application.dtos.workflow import (
    DEFINITION_FIELDS,
    WorkflowDefinitionCreate,
    WorkflowDefinitionPatch,
    WorkflowDefinitionResult,
    WorkflowVersionResult,
)
from app.application.interfaces.repositories import IWorkflowDefinitionRepository
from app.domain.enums import TriggerType
from app.domain.exceptions import ResourceNotFoundException, ValidationException
from app.domain.value_objects.workflow import TriggerSpec, parse_actions, parse_conditions
from app.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from app.application.use_cases.workflows.version_ledger import VersionLedger

logger = get_logger(__name__)

_NAME_MAX_LENGTH = 255


class WorkflowRegistry:
    """Tenant-scoped CRUD for workflow definitions with write-time validation."""

    def __init__(
        self,
        workflow_repo: IWorkflowDefinitionRepository,
        version_ledger: VersionLedger,
        *,
        allowed_tables: frozenset[str] = frozenset(),
    ) -> None:
        self._workflow_repo = workflow_repo
        self._version_ledger = version_ledger
        self._allowed_tables = allowed_tables

    async def get(self, tenant_id: str, workflow_id: str) -> WorkflowDefinitionResult:
        """Return definition if it belongs to tenant; else raise ResourceNotFoundException."""
        definition = await self._workflow_repo.get_by_id(workflow_id, tenant_id)
        if not definition:
            raise ResourceNotFoundException("workflow", workflow_id)
        return definition

    async def list(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        include_inactive: bool = False,
    ) -> list[WorkflowDefinitionResult]:
        return await self._workflow_repo.get_by_tenant(
            tenant_id, skip=skip, limit=limit, include_inactive=include_inactive
        )

    async def create(
        self,
        tenant_id: str,
        data: WorkflowDefinitionCreate,
        actor_id: str | None,
    ) -> WorkflowDefinitionResult:
        """Validate and insert a definition, then record version 1.

        Raises:
            ValidationException: If name, trigger, conditions, or actions are invalid.
        """
        validated = self._validate(
            {
                "name": data.name,
                "description": data.description,
                "trigger_type": data.trigger_type,
                "trigger_config": data.trigger_config,
                "conditions": data.conditions,
                "actions": data.actions,
                "is_active": data.is_active,
            }
        )
        definition = await self._workflow_repo.create_definition(
            tenant_id, actor_id=actor_id, **validated
        )
        await self._version_ledger.record_version(definition, actor_id)
        logger.info(
            "Workflow created: id=%s tenant_id=%s trigger_type=%s",
            definition.id,
            tenant_id,
            definition.trigger_type,
        )
        return definition

    async def update(
        self,
        tenant_id: str,
        workflow_id: str,
        patch: WorkflowDefinitionPatch,
        actor_id: str | None,
    ) -> WorkflowDefinitionResult:
        """Apply a partial update; None fields are left unchanged.

        Raises:
            ValidationException: On tenant_id change or invalid merged definition.
            ResourceNotFoundException: If workflow not found in tenant.
        """
        if patch.tenant_id is not None and patch.tenant_id != tenant_id:
            raise ValidationException(
                "tenant_id cannot be changed after creation", field="tenant_id"
            )
        changes = {
            f.name: getattr(patch, f.name)
            for f in fields(patch)
            if f.name != "tenant_id" and getattr(patch, f.name) is not None
        }
        definition, _ = await self._write(tenant_id, workflow_id, changes, actor_id)
        return definition

    async def set_active(
        self,
        tenant_id: str,
        workflow_id: str,
        is_active: bool,
        actor_id: str | None,
    ) -> WorkflowDefinitionResult:
        """Activate or deactivate; recorded as a version like any other write."""
        return await self.update(
            tenant_id, workflow_id, WorkflowDefinitionPatch(is_active=is_active), actor_id
        )

    async def replace_definition(
        self,
        tenant_id: str,
        workflow_id: str,
        definition_fields: dict[str, Any],
        actor_id: str | None,
    ) -> tuple[WorkflowDefinitionResult, WorkflowVersionResult]:
        """Overwrite every versioned field (restore path); returns the new version too.

        Unlike update, None values are applied (e.g. clearing description).
        """
        changes = {name: definition_fields.get(name) for name in DEFINITION_FIELDS}
        return await self._write(
            tenant_id, workflow_id, changes, actor_id, replace=True
        )

    async def _write(
        self,
        tenant_id: str,
        workflow_id: str,
        changes: dict[str, Any],
        actor_id: str | None,
        *,
        replace: bool = False,
    ) -> tuple[WorkflowDefinitionResult, WorkflowVersionResult]:
        if not await self._workflow_repo.lock_for_update(workflow_id, tenant_id):
            raise ResourceNotFoundException("workflow", workflow_id)
        current = await self.get(tenant_id, workflow_id)
        merged = current.definition_fields()
        merged.update(changes)
        if not replace and "description" in changes and changes["description"] == "":
            merged["description"] = None
        validated = self._validate(merged)
        updated = await self._workflow_repo.update_definition(
            workflow_id, tenant_id, validated, actor_id
        )
        if updated is None:
            raise ResourceNotFoundException("workflow", workflow_id)
        version = await self._version_ledger.record_version(updated, actor_id)
        logger.info(
            "Workflow updated: id=%s tenant_id=%s version=%s",
            workflow_id,
            tenant_id,
            version.version_number,
        )
        return updated, version

    def _validate(self, data: dict[str, Any]) -> dict[str, Any]:
        """Parse into value objects and return the normalized stored form."""
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationException("name is required", field="name")
        name = name.strip()
        if len(name) > _NAME_MAX_LENGTH:
            raise ValidationException(
                f"name must be at most {_NAME_MAX_LENGTH} characters", field="name"
            )

        try:
            trigger = TriggerSpec.from_config(data.get("trigger_type"), data.get("trigger_config"))
        except ValueError as e:
            raise ValidationException(str(e), field="trigger_config") from e
        if (
            trigger.trigger_type == TriggerType.TABLE_EVENT
            and self._allowed_tables
            and trigger.table_name not in self._allowed_tables
        ):
            raise ValidationException(
                f"table '{trigger.table_name}' is not enabled for workflow triggers",
                field="trigger_config",
            )

        try:
            conditions = parse_conditions(data.get("conditions"))
        except ValueError as e:
            raise ValidationException(str(e), field="conditions") from e
        try:
            actions = parse_actions(data.get("actions"))
        except ValueError as e:
            raise ValidationException(str(e), field="actions") from e

        is_active = bool(data.get("is_active", True))
        if is_active and not actions:
            raise ValidationException(
                "A workflow needs at least one action before it can be active",
                field="actions",
            )

        return {
            "name": name,
            "description": data.get("description"),
            "trigger_type": trigger.trigger_type.value,
            "trigger_config": trigger.to_config(),
            "conditions": [c.to_dict() for c in conditions],
            "actions": [a.to_dict() for a in actions],
            "is_active": is_active,
        }
