"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.dead_letter import DeadLetterEntry
from app.infrastructure.persistence.models.mixins import (
    ActorAuditMixin,
    AuditedMultiTenantModel,
    CreatedAtMixin,
    CuidMixin,
    MultiTenantModel,
    TenantMixin,
    TimestampMixin,
)
from app.infrastructure.persistence.models.workflow import (
    WorkflowDefinition,
    WorkflowVersion,
)
from app.infrastructure.persistence.models.workflow_execution import WorkflowExecution

__all__ = [
    "WorkflowDefinition",
    "WorkflowVersion",
    "WorkflowExecution",
    "DeadLetterEntry",
    "CuidMixin",
    "TenantMixin",
    "CreatedAtMixin",
    "TimestampMixin",
    "ActorAuditMixin",
    "MultiTenantModel",
    "AuditedMultiTenantModel",
]
