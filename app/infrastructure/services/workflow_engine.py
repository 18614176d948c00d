"""Workflow engine: turn mutation events into queued executions.

Ingestion only matches and enqueues; actions run later in the worker pool
(see execution_runner), so the event source never waits on execution.
"""

from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.dtos.execution import WorkflowExecutionResult
from app.application.dtos.mutation_event import MutationEvent
from app.application.dtos.workflow import WorkflowDefinitionResult
from app.application.interfaces.repositories import (
    IWorkflowDefinitionRepository,
    IWorkflowExecutionRepository,
    IWorkflowVersionRepository,
)
from app.application.interfaces.services import IMutationEventBus
from app.application.services.trigger_matcher import TriggerMatcher
from app.domain.enums import TriggerType
from app.domain.exceptions import InvalidStateTransitionException, ResourceNotFoundException
from app.infrastructure.persistence.repositories import (
    WorkflowDefinitionRepository,
    WorkflowExecutionRepository,
    WorkflowVersionRepository,
)
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class WorkflowEngine:
    """Matches events to workflows and enqueues one execution per match."""

    def __init__(
        self,
        db: AsyncSession,
        workflow_repo: IWorkflowDefinitionRepository,
        execution_repo: IWorkflowExecutionRepository,
        version_repo: IWorkflowVersionRepository,
        *,
        matcher: TriggerMatcher | None = None,
    ) -> None:
        self.db = db
        self.workflow_repo = workflow_repo
        self.execution_repo = execution_repo
        self.version_repo = version_repo
        self.matcher = matcher or TriggerMatcher(workflow_repo)

    @classmethod
    def for_session(cls, db: AsyncSession) -> WorkflowEngine:
        """Build an engine wired to SQL repositories on one session."""
        return cls(
            db,
            WorkflowDefinitionRepository(db),
            WorkflowExecutionRepository(db),
            WorkflowVersionRepository(db),
        )

    async def on_mutation(self, event: MutationEvent) -> list[WorkflowExecutionResult]:
        """Enqueue executions for every matching workflow. Never raises.

        Work happens in a savepoint; on any error it is rolled back, logged,
        and an empty list returned, so the caller's transaction stays usable.
        event_id (when set) is the idempotency key: a redelivered event
        enqueues nothing new.
        """
        try:
            async with self.db.begin_nested():
                return await self._ingest(event)
        except Exception:
            logger.exception(
                "Failed to process mutation event (tenant_id=%s, table=%s, operation=%s, event_id=%s)",
                event.tenant_id,
                event.table_name,
                event.operation.value,
                event.event_id,
            )
            return []

    async def _ingest(self, event: MutationEvent) -> list[WorkflowExecutionResult]:
        matched = await self.matcher.match(event)
        trigger_data = event.to_trigger_data()
        executions: list[WorkflowExecutionResult] = []
        for definition in matched:
            execution = await self._enqueue(
                definition, trigger_data, idempotency_key=event.event_id
            )
            if execution is None:
                logger.info(
                    "Duplicate event %s for workflow %s ignored (tenant_id=%s)",
                    event.event_id,
                    definition.id,
                    event.tenant_id,
                )
                continue
            executions.append(execution)
        if executions:
            logger.info(
                "Queued %d execution(s) for %s on %s (tenant_id=%s)",
                len(executions),
                event.operation.value,
                event.table_name,
                event.tenant_id,
            )
        return executions

    async def run_now(
        self,
        tenant_id: str,
        workflow_id: str,
        payload: dict[str, Any] | None,
        actor_id: str | None,
    ) -> WorkflowExecutionResult:
        """Enqueue a manual run of an active workflow with the given payload.

        Raises:
            ResourceNotFoundException: If workflow not found in tenant.
            InvalidStateTransitionException: If the workflow is inactive.
        """
        definition = await self.workflow_repo.get_by_id(workflow_id, tenant_id)
        if not definition:
            raise ResourceNotFoundException("workflow", workflow_id)
        if not definition.is_active:
            raise InvalidStateTransitionException("workflow", workflow_id, "inactive", "run")
        trigger_data = {
            "tenant_id": tenant_id,
            "trigger_type": TriggerType.MANUAL.value,
            "payload": payload or {},
            "requested_by": actor_id,
            "occurred_at": utc_now().isoformat(),
        }
        execution = await self._enqueue(definition, trigger_data)
        assert execution is not None
        logger.info(
            "Manual run of workflow %s queued as %s by %s (tenant_id=%s)",
            workflow_id,
            execution.id,
            actor_id,
            tenant_id,
        )
        return execution

    async def _enqueue(
        self,
        definition: WorkflowDefinitionResult,
        trigger_data: dict[str, Any],
        *,
        idempotency_key: str | None = None,
    ) -> WorkflowExecutionResult | None:
        latest = await self.version_repo.get_latest(definition.id)
        return await self.execution_repo.enqueue(
            tenant_id=definition.tenant_id,
            workflow_id=definition.id,
            workflow_version=latest.version_number if latest else None,
            trigger_data=trigger_data,
            idempotency_key=idempotency_key,
        )


async def run_mutation_consumer(
    bus: IMutationEventBus,
    session_factory: async_sessionmaker[AsyncSession],
    *,
    reconnect_delay_seconds: float = 1.0,
    max_reconnect_delay_seconds: float = 30.0,
) -> None:
    """Consume the mutation bus, ingesting each event in its own transaction.

    A broken subscription is retried with doubling delay (capped); the loop
    ends when the bus is closed or the task is cancelled.
    """
    logger.info("Mutation event consumer started")
    delay = reconnect_delay_seconds
    while True:
        try:
            async for event in bus.subscribe():
                delay = reconnect_delay_seconds
                await _ingest_from_bus(event, session_factory)
        except Exception as e:
            logger.warning(
                "Mutation bus subscription failed, resubscribing in %.1fs: %s", delay, e
            )
            await asyncio.sleep(delay)
            delay = min(delay * 2, max_reconnect_delay_seconds)
            continue
        break
    logger.info("Mutation event consumer stopped")


async def _ingest_from_bus(
    event: MutationEvent, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    try:
        async with session_factory() as session, session.begin():
            await WorkflowEngine.for_session(session).on_mutation(event)
    except Exception:
        logger.exception(
            "Mutation event transaction failed (tenant_id=%s, event_id=%s)",
            event.tenant_id,
            event.event_id,
        )
