"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.dead_letter_repo import (
    DeadLetterRepository,
)
from app.infrastructure.persistence.repositories.workflow_execution_repo import (
    WorkflowExecutionRepository,
)
from app.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowDefinitionRepository,
)
from app.infrastructure.persistence.repositories.workflow_version_repo import (
    WorkflowVersionRepository,
)

__all__ = [
    "BaseRepository",
    "DeadLetterRepository",
    "WorkflowDefinitionRepository",
    "WorkflowExecutionRepository",
    "WorkflowVersionRepository",
]
