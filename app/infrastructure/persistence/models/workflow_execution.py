"""WorkflowExecution ORM model. The execution queue: one row per run, claimed by runners."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import Index, JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import MultiTenantModel
from app.infrastructure.persistence.models.workflow import in_values_check
from app.shared.enums import WorkflowExecutionStatus


class WorkflowExecution(MultiTenantModel, Base):
    """Workflow execution. Table: workflow_execution."""

    __tablename__ = "workflow_execution"

    workflow_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_definition.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    workflow_version: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=WorkflowExecutionStatus.QUEUED.value,
        index=True,
    )
    trigger_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    retry_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    execution_log: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    # Not claimable before this time; carries retry backoff.
    available_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    claimed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    claim_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    idempotency_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    retried_from_dead_letter_id: Mapped[str | None] = mapped_column(
        String, nullable=True
    )

    __table_args__ = (
        Index(
            "ix_workflow_execution_tenant_workflow",
            "tenant_id",
            "workflow_id",
        ),
        Index(
            "ix_workflow_execution_claimable",
            "status",
            "available_at",
        ),
        UniqueConstraint(
            "workflow_id",
            "idempotency_key",
            name="uq_workflow_execution_idempotency_key",
        ),
        in_values_check(
            "status",
            WorkflowExecutionStatus.values(),
            "workflow_execution_status_check",
        ),
    )
