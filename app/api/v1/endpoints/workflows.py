"""Workflow API: thin routes delegating to WorkflowRegistry, VersionLedger, and WorkflowEngine.

Static segments (/executions/{id}, /versions/stats, /versions/compare) are
declared before the parameterized routes they would otherwise shadow.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from app.api.v1.dependencies import (
    get_actor_id,
    get_restore_version_use_case,
    get_tenant_id,
    get_version_ledger,
    get_workflow_engine_for_write,
    get_workflow_execution_repo,
    get_workflow_registry,
    get_workflow_registry_for_write,
)
from app.application.dtos.workflow import WorkflowDefinitionCreate, WorkflowDefinitionPatch
from app.application.use_cases.workflows import (
    RestoreWorkflowVersionUseCase,
    VersionLedger,
    WorkflowRegistry,
)
from app.core.limiter import limit_writes
from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.persistence.repositories import WorkflowExecutionRepository
from app.infrastructure.services import WorkflowEngine
from app.schemas.workflow import (
    VersionComparisonResponse,
    VersionStatsResponse,
    WorkflowActiveRequest,
    WorkflowCreateRequest,
    WorkflowExecutionResponse,
    WorkflowResponse,
    WorkflowRestoreResponse,
    WorkflowRunRequest,
    WorkflowUpdate,
    WorkflowVersionResponse,
)

router = APIRouter()


@router.post("", response_model=WorkflowResponse, status_code=201)
@limit_writes
async def create_workflow(
    request: Request,
    body: WorkflowCreateRequest,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    actor_id: Annotated[str, Depends(get_actor_id)],
    registry: Annotated[WorkflowRegistry, Depends(get_workflow_registry_for_write)],
):
    """Create a workflow (tenant-scoped); records version 1."""
    workflow = await registry.create(
        tenant_id,
        WorkflowDefinitionCreate(
            name=body.name,
            trigger_type=body.trigger_type,
            trigger_config=body.trigger_config,
            actions=body.actions,
            conditions=body.conditions,
            description=body.description,
            is_active=body.is_active,
        ),
        actor_id,
    )
    return WorkflowResponse.model_validate(workflow)


@router.get("", response_model=list[WorkflowResponse])
async def list_workflows(
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    registry: Annotated[WorkflowRegistry, Depends(get_workflow_registry)],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    include_inactive: bool = True,
):
    """List workflows for tenant (paginated)."""
    workflows = await registry.list(
        tenant_id, skip=skip, limit=limit, include_inactive=include_inactive
    )
    return [WorkflowResponse.model_validate(w) for w in workflows]


@router.get(
    "/executions/{execution_id}",
    response_model=WorkflowExecutionResponse,
)
async def get_execution(
    execution_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    execution_repo: Annotated[
        WorkflowExecutionRepository, Depends(get_workflow_execution_repo)
    ],
):
    """Get workflow execution by id. Tenant-scoped."""
    execution = await execution_repo.get_by_id(execution_id, tenant_id)
    if not execution:
        raise ResourceNotFoundException("workflow_execution", execution_id)
    return WorkflowExecutionResponse.model_validate(execution)


@router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow(
    workflow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    registry: Annotated[WorkflowRegistry, Depends(get_workflow_registry)],
):
    """Get workflow by id (tenant-scoped)."""
    workflow = await registry.get(tenant_id, workflow_id)
    return WorkflowResponse.model_validate(workflow)


@router.put("/{workflow_id}", response_model=WorkflowResponse)
@limit_writes
async def update_workflow(
    request: Request,
    workflow_id: str,
    body: WorkflowUpdate,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    actor_id: Annotated[str, Depends(get_actor_id)],
    registry: Annotated[WorkflowRegistry, Depends(get_workflow_registry_for_write)],
):
    """Update workflow (partial; tenant-scoped). Every update records a new version."""
    workflow = await registry.update(
        tenant_id,
        workflow_id,
        WorkflowDefinitionPatch(**body.model_dump()),
        actor_id,
    )
    return WorkflowResponse.model_validate(workflow)


@router.put("/{workflow_id}/active", response_model=WorkflowResponse)
@limit_writes
async def set_workflow_active(
    request: Request,
    workflow_id: str,
    body: WorkflowActiveRequest,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    actor_id: Annotated[str, Depends(get_actor_id)],
    registry: Annotated[WorkflowRegistry, Depends(get_workflow_registry_for_write)],
):
    """Activate or deactivate a workflow."""
    workflow = await registry.set_active(tenant_id, workflow_id, body.is_active, actor_id)
    return WorkflowResponse.model_validate(workflow)


@router.post(
    "/{workflow_id}/run",
    response_model=WorkflowExecutionResponse,
    status_code=202,
)
@limit_writes
async def run_workflow(
    request: Request,
    workflow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    actor_id: Annotated[str, Depends(get_actor_id)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine_for_write)],
    body: WorkflowRunRequest | None = None,
):
    """Queue a manual run of an active workflow; the worker pool executes it."""
    execution = await engine.run_now(
        tenant_id, workflow_id, body.payload if body else None, actor_id
    )
    return WorkflowExecutionResponse.model_validate(execution)


@router.get(
    "/{workflow_id}/executions",
    response_model=list[WorkflowExecutionResponse],
)
async def get_workflow_executions(
    workflow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    registry: Annotated[WorkflowRegistry, Depends(get_workflow_registry)],
    execution_repo: Annotated[
        WorkflowExecutionRepository, Depends(get_workflow_execution_repo)
    ],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """Get execution history for a workflow, newest first. Tenant-scoped."""
    await registry.get(tenant_id, workflow_id)
    executions = await execution_repo.get_by_workflow(
        workflow_id, tenant_id, skip=skip, limit=limit
    )
    return [WorkflowExecutionResponse.model_validate(e) for e in executions]


@router.get(
    "/{workflow_id}/versions",
    response_model=list[WorkflowVersionResponse],
)
async def list_workflow_versions(
    workflow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    ledger: Annotated[VersionLedger, Depends(get_version_ledger)],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """List versions newest first."""
    versions = await ledger.list_versions(tenant_id, workflow_id, skip=skip, limit=limit)
    return [WorkflowVersionResponse.model_validate(v) for v in versions]


@router.get("/{workflow_id}/versions/stats", response_model=VersionStatsResponse)
async def get_workflow_version_stats(
    workflow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    ledger: Annotated[VersionLedger, Depends(get_version_ledger)],
):
    """Version count, latest number, last change time, restore count."""
    stats = await ledger.stats(tenant_id, workflow_id)
    return VersionStatsResponse.model_validate(stats)


@router.get(
    "/{workflow_id}/versions/compare",
    response_model=VersionComparisonResponse,
)
async def compare_workflow_versions(
    workflow_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    ledger: Annotated[VersionLedger, Depends(get_version_ledger)],
    version_a: int = Query(..., ge=1),
    version_b: int = Query(..., ge=1),
):
    """Compare two versions; 404 if either does not exist."""
    comparison = await ledger.compare(tenant_id, workflow_id, version_a, version_b)
    return VersionComparisonResponse.model_validate(comparison)


@router.get(
    "/{workflow_id}/versions/{version_number}",
    response_model=WorkflowVersionResponse,
)
async def get_workflow_version(
    workflow_id: str,
    version_number: int,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    ledger: Annotated[VersionLedger, Depends(get_version_ledger)],
):
    """Get one version snapshot."""
    version = await ledger.get_version(tenant_id, workflow_id, version_number)
    return WorkflowVersionResponse.model_validate(version)


@router.post(
    "/{workflow_id}/versions/{version_number}/restore",
    response_model=WorkflowRestoreResponse,
)
@limit_writes
async def restore_workflow_version(
    request: Request,
    workflow_id: str,
    version_number: int,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    actor_id: Annotated[str, Depends(get_actor_id)],
    use_case: Annotated[
        RestoreWorkflowVersionUseCase, Depends(get_restore_version_use_case)
    ],
):
    """Copy a past version onto the live definition, recorded as a new version."""
    workflow, version = await use_case.execute(tenant_id, workflow_id, version_number, actor_id)
    return WorkflowRestoreResponse(
        workflow=WorkflowResponse.model_validate(workflow),
        version=WorkflowVersionResponse.model_validate(version),
    )
