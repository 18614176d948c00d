"""DTOs for workflow definitions and their version history."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# Fields snapshotted into every version and copied back on restore.
DEFINITION_FIELDS: tuple[str, ...] = (
    "name",
    "description",
    "trigger_type",
    "trigger_config",
    "conditions",
    "actions",
    "is_active",
)


@dataclass(frozen=True)
class WorkflowDefinitionCreate:
    """Input for creating a workflow definition (write-model)."""

    name: str
    trigger_type: str
    trigger_config: dict[str, Any]
    actions: list[dict[str, Any]]
    conditions: list[dict[str, Any]] = field(default_factory=list)
    description: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class WorkflowDefinitionPatch:
    """Partial update; None means leave unchanged.

    tenant_id is accepted only so that an attempt to change it can be
    rejected explicitly.
    """

    name: str | None = None
    description: str | None = None
    trigger_type: str | None = None
    trigger_config: dict[str, Any] | None = None
    conditions: list[dict[str, Any]] | None = None
    actions: list[dict[str, Any]] | None = None
    is_active: bool | None = None
    tenant_id: str | None = None


@dataclass(frozen=True)
class WorkflowDefinitionResult:
    """Workflow definition read-model."""

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

    def definition_fields(self) -> dict[str, Any]:
        """Return the versioned fields (name, trigger, conditions, actions, ...)."""
        return {name: getattr(self, name) for name in DEFINITION_FIELDS}


@dataclass(frozen=True)
class WorkflowVersionResult:
    """Immutable version snapshot read-model."""

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

    def definition_fields(self) -> dict[str, Any]:
        """Return the snapshotted definition fields."""
        return {name: getattr(self, name) for name in DEFINITION_FIELDS}


@dataclass(frozen=True)
class VersionComparison:
    """Result of comparing two versions of one workflow.

    changes flags each tracked field; from_values/to_values hold the
    differing fields only, labelled by argument order.
    """

    workflow_id: str
    from_version: int
    to_version: int
    changes: dict[str, bool]
    changed_fields: list[str]
    from_values: dict[str, Any]
    to_values: dict[str, Any]


@dataclass(frozen=True)
class VersionStats:
    """Summary of a workflow's version history."""

    workflow_id: str
    total_versions: int
    latest_version: int | None
    last_changed_at: datetime | None
    restore_count: int
