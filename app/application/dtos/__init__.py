"""Application DTOs (no ORM dependency)."""

from app.application.dtos.execution import (
    ActionResult,
    DeadLetterResult,
    DeadLetterSummary,
    WorkflowExecutionResult,
)
from app.application.dtos.mutation_event import MutationEvent
from app.application.dtos.workflow import (
    VersionComparison,
    VersionStats,
    WorkflowDefinitionCreate,
    WorkflowDefinitionPatch,
    WorkflowDefinitionResult,
    WorkflowVersionResult,
)

__all__ = [
    "ActionResult",
    "DeadLetterResult",
    "DeadLetterSummary",
    "MutationEvent",
    "VersionComparison",
    "VersionStats",
    "WorkflowDefinitionCreate",
    "WorkflowDefinitionPatch",
    "WorkflowDefinitionResult",
    "WorkflowExecutionResult",
    "WorkflowVersionResult",
]
