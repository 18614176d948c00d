"""Shared test data and doubles (imported by test modules as tests.helpers)."""

from datetime import UTC, datetime
from typing import Any

from app.application.dtos.execution import ActionResult, WorkflowExecutionResult
from app.application.dtos.workflow import WorkflowDefinitionCreate, WorkflowDefinitionResult
from app.application.use_cases.workflows import (
    RestoreWorkflowVersionUseCase,
    VersionLedger,
    WorkflowRegistry,
)
from app.infrastructure.persistence.repositories import (
    WorkflowDefinitionRepository,
    WorkflowVersionRepository,
)

TENANT_ID = "tenant-acme"
OTHER_TENANT_ID = "tenant-globex"
ACTOR_ID = "user-1"


def order_cancelled_workflow(**overrides: Any) -> dict[str, Any]:
    """Request body for the canonical orders/update/status == cancelled workflow."""
    body: dict[str, Any] = {
        "name": "Notify on cancellation",
        "trigger_type": "table_event",
        "trigger_config": {"table_name": "orders", "operation": "update"},
        "conditions": [{"field": "status", "operator": "equals", "value": "cancelled"}],
        "actions": [
            {"action_kind": "log", "parameters": {"message": "order cancelled"}},
        ],
    }
    body.update(overrides)
    return body


class RecordingExecutor:
    """Action executor double: records calls, fails on demand."""

    def __init__(self, *, fail: bool = False, raises: Exception | None = None) -> None:
        self.fail = fail
        self.raises = raises
        self.calls: list[tuple[str, dict[str, Any], dict[str, Any]]] = []

    async def execute(
        self,
        action_kind: str,
        parameters: dict[str, Any],
        trigger_data: dict[str, Any],
    ) -> ActionResult:
        self.calls.append((action_kind, parameters, trigger_data))
        if self.raises is not None:
            raise self.raises
        if self.fail:
            return ActionResult.failed("simulated failure")
        return ActionResult.ok(calls=len(self.calls))


def definition_result(**overrides: Any) -> WorkflowDefinitionResult:
    """A stored table_event definition (orders/update/status == cancelled)."""
    now = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)
    values: dict[str, Any] = {
        "id": "wf-1",
        "tenant_id": TENANT_ID,
        "name": "Notify on cancellation",
        "description": None,
        "trigger_type": "table_event",
        "trigger_config": {"table_name": "orders", "operation": "update"},
        "conditions": [{"field": "status", "operator": "equals", "value": "cancelled"}],
        "actions": [{"action_kind": "log", "parameters": {}}],
        "is_active": True,
        "run_count": 0,
        "last_run_at": None,
        "created_by": ACTOR_ID,
        "updated_by": ACTOR_ID,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return WorkflowDefinitionResult(**values)


def execution_result(**overrides: Any) -> WorkflowExecutionResult:
    """An execution that just failed its first attempt."""
    now = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)
    values: dict[str, Any] = {
        "id": "ex-1",
        "tenant_id": TENANT_ID,
        "workflow_id": "wf-1",
        "workflow_version": 1,
        "status": "failed",
        "trigger_data": {"table_name": "orders", "new_row": {"status": "cancelled"}},
        "retry_count": 0,
        "last_error": "simulated failure",
        "error_details": {"error_type": "ActionFailed", "action_index": 0},
        "execution_log": [],
        "available_at": now,
        "claimed_by": None,
        "claim_expires_at": None,
        "started_at": now,
        "completed_at": now,
        "idempotency_key": None,
        "retried_from_dead_letter_id": None,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return WorkflowExecutionResult(**values)


def build_ledger(session) -> VersionLedger:
    return VersionLedger(WorkflowVersionRepository(session), WorkflowDefinitionRepository(session))


def build_registry(session) -> WorkflowRegistry:
    """WorkflowRegistry wired to SQL repositories on one session."""
    return WorkflowRegistry(WorkflowDefinitionRepository(session), build_ledger(session))


def build_restore_use_case(session) -> RestoreWorkflowVersionUseCase:
    return RestoreWorkflowVersionUseCase(
        build_registry(session), build_ledger(session), WorkflowVersionRepository(session)
    )


async def create_workflow(
    session_factory, *, tenant_id: str = TENANT_ID, **overrides: Any
) -> WorkflowDefinitionResult:
    """Create and commit a workflow (version 1) through the registry."""
    body = order_cancelled_workflow(**overrides)
    async with session_factory() as session, session.begin():
        return await build_registry(session).create(
            tenant_id, WorkflowDefinitionCreate(**body), ACTOR_ID
        )
