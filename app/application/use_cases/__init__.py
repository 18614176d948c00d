"""Application use cases: one entry point per workflow operation."""

from app.application.use_cases.executions import DeadLetterHandler, FailureOutcome
from app.application.use_cases.workflows import (
    RestoreWorkflowVersionUseCase,
    VersionLedger,
    WorkflowRegistry,
)

__all__ = [
    "DeadLetterHandler",
    "FailureOutcome",
    "RestoreWorkflowVersionUseCase",
    "VersionLedger",
    "WorkflowRegistry",
]
