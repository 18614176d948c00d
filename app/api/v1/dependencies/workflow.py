"""Workflow, version, and execution dependencies (composition root)."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.use_cases.workflows import (
    RestoreWorkflowVersionUseCase,
    VersionLedger,
    WorkflowRegistry,
)
from app.core.config import get_settings
from app.infrastructure.persistence.database import get_db, get_db_transactional
from app.infrastructure.persistence.repositories import (
    WorkflowDefinitionRepository,
    WorkflowExecutionRepository,
    WorkflowVersionRepository,
)
from app.infrastructure.services import WorkflowEngine


def _build_ledger(db: AsyncSession) -> VersionLedger:
    return VersionLedger(
        WorkflowVersionRepository(db),
        WorkflowDefinitionRepository(db),
        max_conflict_retries=get_settings().workflow_version_conflict_retries,
    )


def _build_registry(db: AsyncSession) -> WorkflowRegistry:
    return WorkflowRegistry(
        WorkflowDefinitionRepository(db),
        _build_ledger(db),
        allowed_tables=get_settings().allowed_tables,
    )


async def get_workflow_registry(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> WorkflowRegistry:
    """Workflow registry for read operations (list, get by id)."""
    return _build_registry(db)


async def get_workflow_registry_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> WorkflowRegistry:
    """Workflow registry for create/update (transactional; version recorded in the same transaction)."""
    return _build_registry(db)


async def get_version_ledger(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> VersionLedger:
    """Version ledger for history queries (list, get, compare, stats)."""
    return _build_ledger(db)


async def get_restore_version_use_case(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> RestoreWorkflowVersionUseCase:
    """Build RestoreWorkflowVersionUseCase on one transactional session."""
    ledger = _build_ledger(db)
    registry = WorkflowRegistry(
        WorkflowDefinitionRepository(db),
        ledger,
        allowed_tables=get_settings().allowed_tables,
    )
    return RestoreWorkflowVersionUseCase(registry, ledger, WorkflowVersionRepository(db))


async def get_workflow_execution_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> WorkflowExecutionRepository:
    """Workflow execution repository for read (list by workflow, get by id)."""
    return WorkflowExecutionRepository(db)


async def get_workflow_engine_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> WorkflowEngine:
    """Workflow engine for manual runs and inline event ingestion (transactional)."""
    return WorkflowEngine.for_session(db)
