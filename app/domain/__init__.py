"""Domain layer: value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.enums import ActionKind, ConditionOperator, TriggerOperation, TriggerType
from app.domain.exceptions import (
    ExecutionException,
    InvalidStateTransitionException,
    MatchException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    ValidationException,
    VersionConflictException,
    WorkflowEngineException,
)
from app.domain.value_objects import ActionSpec, Condition, TriggerSpec

__all__ = [
    # Enums
    "ActionKind",
    "ConditionOperator",
    "TriggerOperation",
    "TriggerType",
    # Exceptions
    "ExecutionException",
    "InvalidStateTransitionException",
    "MatchException",
    "ResourceNotFoundException",
    "SqlNotConfiguredException",
    "ValidationException",
    "VersionConflictException",
    "WorkflowEngineException",
    # Value objects
    "ActionSpec",
    "Condition",
    "TriggerSpec",
]
