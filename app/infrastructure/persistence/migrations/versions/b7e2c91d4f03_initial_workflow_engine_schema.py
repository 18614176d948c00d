"""initial_workflow_engine_schema

Revision ID: b7e2c91d4f03
Revises:
Create Date: 2026-10-12 09:14:27.518204

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "b7e2c91d4f03"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "workflow_definition",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("trigger_type", sa.String(length=32), nullable=False),
        sa.Column("trigger_config", sa.JSON(), nullable=False),
        sa.Column("conditions", sa.JSON(), nullable=False),
        sa.Column("actions", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("run_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_run_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "trigger_type IN ('table_event', 'schedule', 'manual', 'webhook')",
            name="workflow_definition_trigger_type_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_workflow_definition_tenant_id", "workflow_definition", ["tenant_id"])
    op.create_index("ix_workflow_definition_created_by", "workflow_definition", ["created_by"])
    op.create_index(
        "ix_workflow_definition_tenant_active_trigger",
        "workflow_definition",
        ["tenant_id", "is_active", "trigger_type"],
    )

    op.create_table(
        "workflow_version",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("trigger_type", sa.String(length=32), nullable=False),
        sa.Column("trigger_config", sa.JSON(), nullable=False),
        sa.Column("conditions", sa.JSON(), nullable=False),
        sa.Column("actions", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("change_summary", sa.Text(), nullable=False),
        sa.Column("change_details", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("restored_from_version", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("version_number >= 1", name="workflow_version_number_positive"),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflow_definition.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("workflow_id", "version_number", name="uq_workflow_version_number"),
    )
    op.create_index("ix_workflow_version_tenant_id", "workflow_version", ["tenant_id"])
    op.create_index("ix_workflow_version_workflow_id", "workflow_version", ["workflow_id"])

    op.create_table(
        "workflow_execution",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("workflow_version", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("trigger_data", sa.JSON(), nullable=False),
        sa.Column("retry_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("error_details", sa.JSON(), nullable=True),
        sa.Column("execution_log", sa.JSON(), nullable=False),
        sa.Column("available_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("claimed_by", sa.String(), nullable=True),
        sa.Column("claim_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("idempotency_key", sa.String(length=255), nullable=True),
        sa.Column("retried_from_dead_letter_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "status IN ('queued', 'running', 'succeeded', 'failed', 'dead_letter')",
            name="workflow_execution_status_check",
        ),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflow_definition.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "workflow_id", "idempotency_key", name="uq_workflow_execution_idempotency_key"
        ),
    )
    op.create_index("ix_workflow_execution_tenant_id", "workflow_execution", ["tenant_id"])
    op.create_index("ix_workflow_execution_workflow_id", "workflow_execution", ["workflow_id"])
    op.create_index("ix_workflow_execution_status", "workflow_execution", ["status"])
    op.create_index(
        "ix_workflow_execution_tenant_workflow",
        "workflow_execution",
        ["tenant_id", "workflow_id"],
    )
    op.create_index(
        "ix_workflow_execution_claimable",
        "workflow_execution",
        ["status", "available_at"],
    )

    op.create_table(
        "dead_letter_entry",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("workflow_execution_id", sa.String(), nullable=False),
        sa.Column("workflow_id", sa.String(), nullable=False),
        sa.Column("trigger_data", sa.JSON(), nullable=False),
        sa.Column("execution_log", sa.JSON(), nullable=False),
        sa.Column("error_type", sa.String(length=64), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=False),
        sa.Column("error_details", sa.JSON(), nullable=False),
        sa.Column("total_attempts", sa.Integer(), nullable=False),
        sa.Column("first_failed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_attempt_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("manual_retry_requested_by", sa.String(), nullable=True),
        sa.Column("manual_retry_requested_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retry_execution_id", sa.String(), nullable=True),
        sa.Column("resolved_by", sa.String(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "status IN ('failed', 'retrying', 'resolved')",
            name="dead_letter_entry_status_check",
        ),
        sa.ForeignKeyConstraint(
            ["workflow_execution_id"], ["workflow_execution.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflow_definition.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("workflow_execution_id"),
    )
    op.create_index("ix_dead_letter_entry_tenant_id", "dead_letter_entry", ["tenant_id"])
    op.create_index("ix_dead_letter_entry_workflow_id", "dead_letter_entry", ["workflow_id"])
    op.create_index(
        "ix_dead_letter_entry_tenant_status", "dead_letter_entry", ["tenant_id", "status"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("dead_letter_entry")
    op.drop_table("workflow_execution")
    op.drop_table("workflow_version")
    op.drop_table("workflow_definition")
