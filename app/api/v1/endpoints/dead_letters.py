"""Dead-letter queue API: inspect, retry, and resolve exhausted executions."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from app.api.v1.dependencies import (
    get_actor_id,
    get_dead_letter_handler,
    get_dead_letter_handler_for_write,
    get_tenant_id,
)
from app.application.use_cases.executions import DeadLetterHandler
from app.core.limiter import limit_writes
from app.schemas.dead_letter import (
    DeadLetterResolveRequest,
    DeadLetterResponse,
    DeadLetterRetryResponse,
    DeadLetterSummaryResponse,
)
from app.schemas.workflow import WorkflowExecutionResponse

router = APIRouter()


@router.get("", response_model=list[DeadLetterResponse])
async def list_dead_letters(
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    handler: Annotated[DeadLetterHandler, Depends(get_dead_letter_handler)],
    status: str | None = Query(None, description="failed, retrying, or resolved"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """List dead-letter entries for tenant, newest first."""
    entries = await handler.list(tenant_id, status=status, skip=skip, limit=limit)
    return [DeadLetterResponse.model_validate(e) for e in entries]


@router.get("/summary", response_model=DeadLetterSummaryResponse)
async def get_dead_letter_summary(
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    handler: Annotated[DeadLetterHandler, Depends(get_dead_letter_handler)],
):
    """Entry counts per status."""
    summary = await handler.summary(tenant_id)
    return DeadLetterSummaryResponse(
        tenant_id=summary.tenant_id, counts=summary.counts, total=summary.total
    )


@router.get("/{entry_id}", response_model=DeadLetterResponse)
async def get_dead_letter(
    entry_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    handler: Annotated[DeadLetterHandler, Depends(get_dead_letter_handler)],
):
    """Get one dead-letter entry with its full diagnostic context."""
    entry = await handler.get(tenant_id, entry_id)
    return DeadLetterResponse.model_validate(entry)


@router.post("/{entry_id}/retry", response_model=DeadLetterRetryResponse, status_code=202)
@limit_writes
async def retry_dead_letter(
    request: Request,
    entry_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    actor_id: Annotated[str, Depends(get_actor_id)],
    handler: Annotated[DeadLetterHandler, Depends(get_dead_letter_handler_for_write)],
):
    """Queue a fresh execution from the entry's stored trigger data; 409 if resolved."""
    execution = await handler.retry_from_dead_letter(tenant_id, entry_id, actor_id)
    return DeadLetterRetryResponse(
        dead_letter_id=entry_id,
        execution=WorkflowExecutionResponse.model_validate(execution),
    )


@router.post("/{entry_id}/resolve", response_model=DeadLetterResponse)
@limit_writes
async def resolve_dead_letter(
    request: Request,
    entry_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    actor_id: Annotated[str, Depends(get_actor_id)],
    handler: Annotated[DeadLetterHandler, Depends(get_dead_letter_handler_for_write)],
    body: DeadLetterResolveRequest | None = None,
):
    """Mark an entry resolved (idempotent)."""
    entry = await handler.resolve(
        tenant_id, entry_id, actor_id, notes=body.notes if body else None
    )
    return DeadLetterResponse.model_validate(entry)
