"""Column mixins shared by the workflow tables.

Tenants and actors belong to the host system, so tenant_id and the actor
columns are plain indexed strings, never foreign keys. Plain mapped_column
attributes on a mixin are copied onto each mapped subclass.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.request_context import TENANT_ID_MAX_LENGTH
from app.shared.utils.generators import generate_cuid


class CuidMixin:
    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)


class TenantMixin:
    tenant_id: Mapped[str] = mapped_column(String(TENANT_ID_MAX_LENGTH), index=True)


class CreatedAtMixin:
    """Append-only rows (versions) only record creation."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class TimestampMixin(CreatedAtMixin):
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class ActorAuditMixin(TimestampMixin):
    created_by: Mapped[str | None] = mapped_column(String, index=True)
    updated_by: Mapped[str | None] = mapped_column(String)


class MultiTenantModel(CuidMixin, TenantMixin, TimestampMixin):
    """Executions and dead-letter entries."""


class AuditedMultiTenantModel(CuidMixin, TenantMixin, ActorAuditMixin):
    """Workflow definitions: tenant rows that also record who changed them."""
