"""Trigger matcher: select the tenant's active workflows for a mutation event."""

from __future__ import annotations

from app.application.dtos.mutation_event import MutationEvent
from app.application.dtos.workflow import WorkflowDefinitionResult
from app.application.interfaces.repositories import IWorkflowDefinitionRepository
from app.application.services.condition_evaluator import evaluate_conditions
from app.domain.exceptions import MatchException
from app.domain.value_objects.workflow import TriggerSpec, parse_conditions
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class TriggerMatcher:
    """Finds definitions whose trigger and conditions match an event.

    Candidates come from a tenant-scoped query; a candidate from another
    tenant is still rejected here. A definition whose stored trigger or
    conditions cannot be parsed or evaluated is logged and skipped.
    """

    def __init__(self, workflow_repo: IWorkflowDefinitionRepository) -> None:
        self._workflow_repo = workflow_repo

    async def match(self, event: MutationEvent) -> list[WorkflowDefinitionResult]:
        """Return matching definitions and record a run on each (best-effort)."""
        candidates = await self._workflow_repo.get_active_table_event_definitions(
            event.tenant_id
        )
        matched: list[WorkflowDefinitionResult] = []
        for definition in candidates:
            if definition.tenant_id != event.tenant_id:
                logger.error(
                    "Cross-tenant candidate rejected: workflow %s (tenant_id=%s) for event tenant_id=%s",
                    definition.id,
                    definition.tenant_id,
                    event.tenant_id,
                )
                continue
            try:
                if self._matches(definition, event):
                    matched.append(definition)
            except MatchException as e:
                logger.warning(
                    "Skipping workflow %s (tenant_id=%s): %s",
                    definition.id,
                    definition.tenant_id,
                    e.details.get("reason"),
                )
        for definition in matched:
            await self._record_run(definition, event)
        return matched

    def _matches(
        self, definition: WorkflowDefinitionResult, event: MutationEvent
    ) -> bool:
        if not definition.is_active:
            return False
        try:
            trigger = TriggerSpec.from_config(
                definition.trigger_type, definition.trigger_config
            )
            conditions = parse_conditions(definition.conditions)
        except ValueError as e:
            raise MatchException(definition.id, f"malformed definition: {e}") from e
        if not trigger.matches_event(event.table_name, event.operation.value):
            return False
        return evaluate_conditions(definition.id, conditions, event)

    async def _record_run(
        self, definition: WorkflowDefinitionResult, event: MutationEvent
    ) -> None:
        # run_count/last_run_at are telemetry; never fail matching over them.
        try:
            await self._workflow_repo.record_run(
                definition.id, definition.tenant_id, event.occurred_at
            )
        except Exception:
            logger.exception(
                "Failed to record run for workflow %s (tenant_id=%s)",
                definition.id,
                definition.tenant_id,
            )
