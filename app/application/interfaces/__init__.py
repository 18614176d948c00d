"""Application interfaces (ports): repository and service protocols."""

from app.application.interfaces.repositories import (
    IDeadLetterRepository,
    IWorkflowDefinitionRepository,
    IWorkflowExecutionRepository,
    IWorkflowVersionRepository,
)
from app.application.interfaces.services import IActionExecutor, IMutationEventBus

__all__ = [
    "IActionExecutor",
    "IDeadLetterRepository",
    "IMutationEventBus",
    "IWorkflowDefinitionRepository",
    "IWorkflowExecutionRepository",
    "IWorkflowVersionRepository",
]
