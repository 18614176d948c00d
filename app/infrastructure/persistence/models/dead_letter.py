"""DeadLetterEntry ORM model. One row per execution that exhausted its retries."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import MultiTenantModel
from app.infrastructure.persistence.models.workflow import in_values_check
from app.shared.enums import DeadLetterStatus


class DeadLetterEntry(MultiTenantModel, Base):
    """Dead-letter entry with full diagnostic context. Table: dead_letter_entry."""

    __tablename__ = "dead_letter_entry"

    workflow_execution_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_execution.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    workflow_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_definition.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    trigger_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    execution_log: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    error_type: Mapped[str] = mapped_column(String(64), nullable=False)
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    error_details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    total_attempts: Mapped[int] = mapped_column(Integer, nullable=False)
    first_failed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    last_attempt_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=DeadLetterStatus.FAILED.value
    )
    manual_retry_requested_by: Mapped[str | None] = mapped_column(String, nullable=True)
    manual_retry_requested_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    retry_execution_id: Mapped[str | None] = mapped_column(String, nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(String, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_dead_letter_entry_tenant_status", "tenant_id", "status"),
        in_values_check(
            "status", DeadLetterStatus.values(), "dead_letter_entry_status_check"
        ),
    )
