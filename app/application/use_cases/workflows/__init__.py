"""Workflow use cases: registry writes, version ledger, restore."""

from app.application.use_cases.workflows.version_ledger import (
    RestoreWorkflowVersionUseCase,
    VersionLedger,
)
from app.application.use_cases.workflows.workflow_registry import WorkflowRegistry

__all__ = [
    "RestoreWorkflowVersionUseCase",
    "VersionLedger",
    "WorkflowRegistry",
]
