"""WorkflowDefinition and WorkflowVersion ORM models. Definitions plus their append-only history."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    CheckConstraint,
    Index,
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.enums import TriggerType
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    AuditedMultiTenantModel,
    CreatedAtMixin,
    CuidMixin,
    TenantMixin,
)


def in_values_check(column: str, values: list[str], name: str) -> CheckConstraint:
    """Return CHECK (column IN (...)) over an enum's values."""
    return CheckConstraint(
        "{} IN ({})".format(
            column,
            ", ".join("'{}'".format(v.replace("'", "''")) for v in values),
        ),
        name=name,
    )


class WorkflowDefinition(AuditedMultiTenantModel, Base):
    """Workflow definition. Table: workflow_definition. Trigger, conditions, actions JSON."""

    __tablename__ = "workflow_definition"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    trigger_type: Mapped[str] = mapped_column(String(32), nullable=False)
    trigger_config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    conditions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    actions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )
    # Non-authoritative telemetry; incremented atomically on match.
    run_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    last_run_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index(
            "ix_workflow_definition_tenant_active_trigger",
            "tenant_id",
            "is_active",
            "trigger_type",
        ),
        in_values_check(
            "trigger_type", TriggerType.values(), "workflow_definition_trigger_type_check"
        ),
    )


class WorkflowVersion(CuidMixin, TenantMixin, CreatedAtMixin, Base):
    """Immutable snapshot of a definition. Table: workflow_version."""

    __tablename__ = "workflow_version"

    workflow_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_definition.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    trigger_type: Mapped[str] = mapped_column(String(32), nullable=False)
    trigger_config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    conditions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    actions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False)
    change_summary: Mapped[str] = mapped_column(Text, nullable=False)
    change_details: Mapped[dict[str, bool]] = mapped_column(JSON, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)
    restored_from_version: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "workflow_id", "version_number", name="uq_workflow_version_number"
        ),
        CheckConstraint("version_number >= 1", name="workflow_version_number_positive"),
    )
