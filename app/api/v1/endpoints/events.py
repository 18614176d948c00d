"""Mutation event ingestion: the host datastore reports row changes here."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import get_tenant_id, get_workflow_engine_for_write
from app.application.dtos.mutation_event import MutationEvent
from app.core.limiter import limit_event_ingest
from app.domain.exceptions import ValidationException
from app.domain.value_objects.workflow import is_well_formed_table_name
from app.infrastructure.services import WorkflowEngine
from app.schemas.event import MutationEventAcceptedResponse, MutationEventRequest
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import ensure_utc, utc_now

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/mutations",
    response_model=MutationEventAcceptedResponse,
    status_code=202,
)
@limit_event_ingest
async def ingest_mutation_event(
    request: Request,
    body: MutationEventRequest,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine_for_write)],
):
    """Publish the event to the mutation bus; ingest inline when no bus is running.

    Matching failures never surface here: the event is accepted either way.
    """
    if not is_well_formed_table_name(body.table_name):
        raise ValidationException(
            "table_name must be a lowercase identifier (optional schema prefix)",
            field="table_name",
        )
    event = MutationEvent(
        tenant_id=tenant_id,
        table_name=body.table_name,
        operation=body.operation,
        old_row=body.old_row,
        new_row=body.new_row,
        event_id=body.event_id,
        occurred_at=ensure_utc(body.occurred_at) if body.occurred_at else utc_now(),
    )
    bus = getattr(request.app.state, "mutation_bus", None)
    if bus is not None and await bus.publish(event):
        return MutationEventAcceptedResponse(status="published")
    if bus is not None:
        logger.warning(
            "Mutation bus rejected event, ingesting inline (tenant_id=%s, event_id=%s)",
            tenant_id,
            event.event_id,
        )
    executions = await engine.on_mutation(event)
    return MutationEventAcceptedResponse(
        status="ingested",
        queued_execution_ids=[e.id for e in executions],
    )
