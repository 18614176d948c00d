"""Ingestion, runner, retry and dead-letter flow against SQLite.

Each phase commits in its own session: the runner opens sessions on the
same shared connection, so no test transaction is held open around it.
"""

import pytest
from sqlalchemy import func, select, update

from app.application.dtos.mutation_event import MutationEvent
from app.application.services.retry_policy import RetryPolicy
from app.domain.exceptions import InvalidStateTransitionException
from app.infrastructure.persistence.models.dead_letter import DeadLetterEntry
from app.infrastructure.persistence.models.workflow_execution import WorkflowExecution
from app.infrastructure.persistence.repositories import (
    DeadLetterRepository,
    WorkflowDefinitionRepository,
    WorkflowExecutionRepository,
)
from app.infrastructure.services.action_executors import ActionExecutorRegistry
from app.infrastructure.services.execution_runner import (
    ExecutionRunner,
    build_dead_letter_handler,
)
from app.infrastructure.services.workflow_engine import WorkflowEngine
from app.shared.enums import MutationOperation
from app.shared.utils.datetime import utc_now
from tests.helpers import (
    ACTOR_ID,
    OTHER_TENANT_ID,
    TENANT_ID,
    RecordingExecutor,
    create_workflow,
)

POLICY = RetryPolicy(max_retries=3, backoff_base_seconds=0, jitter=False)

TWO_STEP_ACTIONS = [
    {"action_kind": "log", "parameters": {"message": "first"}},
    {"action_kind": "send_email", "parameters": {"to": "ops@example.com"}},
]


def _order_update(status: str, *, tenant_id: str = TENANT_ID, event_id: str | None = None) -> MutationEvent:
    return MutationEvent(
        tenant_id=tenant_id,
        table_name="orders",
        operation=MutationOperation.UPDATE,
        old_row={"id": "ord-1", "status": "new"},
        new_row={"id": "ord-1", "status": status},
        event_id=event_id,
    )


async def _ingest(session_factory, event: MutationEvent):
    async with session_factory() as session, session.begin():
        return await WorkflowEngine.for_session(session).on_mutation(event)


async def _get_execution(session_factory, execution_id: str, tenant_id: str = TENANT_ID):
    async with session_factory() as session:
        return await WorkflowExecutionRepository(session).get_by_id(execution_id, tenant_id)


def _registry(first: RecordingExecutor, second: RecordingExecutor) -> ActionExecutorRegistry:
    registry = ActionExecutorRegistry()
    registry.register("log", first)
    registry.register("send_email", second)
    return registry


async def test_matching_update_enqueues_one_execution(session_factory) -> None:
    workflow = await create_workflow(session_factory)

    executions = await _ingest(session_factory, _order_update("cancelled"))
    assert await _ingest(session_factory, _order_update("shipped")) == []

    assert len(executions) == 1
    execution = executions[0]
    assert execution.workflow_id == workflow.id
    assert execution.status == "queued"
    assert execution.workflow_version == 1
    assert execution.trigger_data["new_row"]["status"] == "cancelled"

    async with session_factory() as session:
        stored = await WorkflowDefinitionRepository(session).get_by_id(workflow.id, TENANT_ID)
    assert stored.run_count == 1
    assert stored.last_run_at is not None


async def test_events_only_reach_their_own_tenant(session_factory) -> None:
    await create_workflow(session_factory)
    other = await create_workflow(session_factory, tenant_id=OTHER_TENANT_ID)

    executions = await _ingest(
        session_factory, _order_update("cancelled", tenant_id=OTHER_TENANT_ID)
    )

    assert [e.workflow_id for e in executions] == [other.id]
    assert executions[0].tenant_id == OTHER_TENANT_ID
    assert await _get_execution(session_factory, executions[0].id, TENANT_ID) is None


async def test_inactive_workflow_is_not_triggered(session_factory) -> None:
    await create_workflow(session_factory, is_active=False)
    assert await _ingest(session_factory, _order_update("cancelled")) == []


async def test_redelivered_event_is_deduplicated(session_factory) -> None:
    await create_workflow(session_factory)
    first = await _ingest(session_factory, _order_update("cancelled", event_id="evt-42"))
    second = await _ingest(session_factory, _order_update("cancelled", event_id="evt-42"))
    assert len(first) == 1
    assert second == []


async def test_successful_run_executes_actions_in_order(session_factory) -> None:
    await create_workflow(session_factory, actions=TWO_STEP_ACTIONS)
    [queued] = await _ingest(session_factory, _order_update("cancelled"))
    first, second = RecordingExecutor(), RecordingExecutor()
    runner = ExecutionRunner(session_factory, _registry(first, second), policy=POLICY)

    claimed = await runner.run_once()
    assert claimed.id == queued.id
    assert await runner.run_once() is None

    done = await _get_execution(session_factory, queued.id)
    assert done.status == "succeeded"
    assert done.completed_at is not None
    assert [entry["action_index"] for entry in done.execution_log] == [0, 1]
    assert all(entry["status"] == "success" for entry in done.execution_log)
    assert first.calls[0][2]["new_row"]["status"] == "cancelled"
    assert len(second.calls) == 1


async def test_failing_action_retries_then_dead_letters(session_factory) -> None:
    await create_workflow(session_factory, actions=TWO_STEP_ACTIONS)
    [queued] = await _ingest(session_factory, _order_update("cancelled"))
    first, second = RecordingExecutor(), RecordingExecutor(fail=True)
    runner = ExecutionRunner(session_factory, _registry(first, second), policy=POLICY)

    for expected_retry_count in (1, 2, 3):
        await runner.run_once()
        execution = await _get_execution(session_factory, queued.id)
        assert execution.status == "queued"
        assert execution.retry_count == expected_retry_count

    await runner.run_once()
    execution = await _get_execution(session_factory, queued.id)
    assert execution.status == "dead_letter"
    assert execution.retry_count == 3
    assert len(first.calls) == 4
    assert len(second.calls) == 4
    assert await runner.run_once() is None

    async with session_factory() as session:
        handler = build_dead_letter_handler(session, POLICY)
        [entry] = await handler.list(TENANT_ID)
        count = await session.scalar(select(func.count(DeadLetterEntry.id)))
    assert count == 1
    assert entry.workflow_execution_id == queued.id
    assert entry.total_attempts == 3
    assert entry.error_details["attempts_including_initial"] == 4
    assert entry.error_type == "ActionFailed"
    assert entry.error_details["action_index"] == 1
    assert entry.error_message == "simulated failure"
    assert entry.trigger_data == queued.trigger_data
    assert len(entry.execution_log) == 8


async def test_raising_executor_is_classified(session_factory) -> None:
    await create_workflow(session_factory)
    [queued] = await _ingest(session_factory, _order_update("cancelled"))
    registry = ActionExecutorRegistry()
    registry.register("log", RecordingExecutor(raises=RuntimeError("smtp down")))
    runner = ExecutionRunner(session_factory, registry, policy=POLICY)

    await runner.run_once()

    execution = await _get_execution(session_factory, queued.id)
    assert execution.status == "queued"
    assert execution.retry_count == 1
    assert execution.last_error == "smtp down"
    assert execution.error_details["error_type"] == "ActionException"
    assert execution.error_details["exception_type"] == "RuntimeError"


async def test_missing_executor_fails_the_execution(session_factory) -> None:
    await create_workflow(session_factory, actions=[{"action_kind": "crm_sync"}])
    [queued] = await _ingest(session_factory, _order_update("cancelled"))
    runner = ExecutionRunner(
        session_factory, ActionExecutorRegistry(), policy=RetryPolicy(max_retries=0)
    )

    await runner.run_once()

    execution = await _get_execution(session_factory, queued.id)
    assert execution.status == "dead_letter"
    assert execution.error_details["error_type"] == "ExecutorNotFound"


async def test_reaper_fails_expired_claims(session_factory) -> None:
    await create_workflow(session_factory)
    [queued] = await _ingest(session_factory, _order_update("cancelled"))
    async with session_factory() as session, session.begin():
        await WorkflowExecutionRepository(session).claim_next("crashed-worker", -1)

    runner = ExecutionRunner(session_factory, _registry(RecordingExecutor(), RecordingExecutor()), policy=POLICY)
    assert await runner.reap_expired_claims() == 1
    assert await runner.reap_expired_claims() == 0

    execution = await _get_execution(session_factory, queued.id)
    assert execution.status == "queued"
    assert execution.retry_count == 1
    assert execution.claimed_by is None
    assert execution.error_details["error_type"] == "ClaimExpired"


async def test_dead_letter_retry_leaves_entry_intact(session_factory) -> None:
    await create_workflow(session_factory, actions=TWO_STEP_ACTIONS)
    [queued] = await _ingest(session_factory, _order_update("cancelled"))
    runner = ExecutionRunner(
        session_factory,
        _registry(RecordingExecutor(), RecordingExecutor(fail=True)),
        policy=RetryPolicy(max_retries=0),
    )
    await runner.run_once()

    async with session_factory() as session:
        [entry] = await build_dead_letter_handler(session, POLICY).list(TENANT_ID)

    async with session_factory() as session, session.begin():
        handler = build_dead_letter_handler(session, POLICY)
        retried = await handler.retry_from_dead_letter(TENANT_ID, entry.id, ACTOR_ID)

    assert retried.id != queued.id
    assert retried.status == "queued"
    assert retried.retry_count == 0
    assert retried.trigger_data == entry.trigger_data
    assert retried.retried_from_dead_letter_id == entry.id

    async with session_factory() as session, session.begin():
        handler = build_dead_letter_handler(session, POLICY)
        after = await handler.get(TENANT_ID, entry.id)
        resolved = await handler.resolve(TENANT_ID, entry.id, ACTOR_ID, notes="handled manually")

    assert after.status == "retrying"
    assert after.retry_execution_id == retried.id
    assert after.manual_retry_requested_by == ACTOR_ID
    assert after.trigger_data == entry.trigger_data
    assert after.error_message == entry.error_message
    assert after.execution_log == entry.execution_log
    assert resolved.status == "resolved"

    async with session_factory() as session:
        handler = build_dead_letter_handler(session, POLICY)
        with pytest.raises(InvalidStateTransitionException):
            await handler.retry_from_dead_letter(TENANT_ID, entry.id, ACTOR_ID)
        summary = await handler.summary(TENANT_ID)
    assert summary.counts["resolved"] == 1
    assert summary.total == 1


async def _dead_letter_one(session_factory):
    await create_workflow(session_factory, actions=TWO_STEP_ACTIONS)
    await _ingest(session_factory, _order_update("cancelled"))
    runner = ExecutionRunner(
        session_factory,
        _registry(RecordingExecutor(), RecordingExecutor(fail=True)),
        policy=RetryPolicy(max_retries=0),
    )
    await runner.run_once()
    async with session_factory() as session:
        [entry] = await build_dead_letter_handler(session, POLICY).list(TENANT_ID)
    return entry


async def test_dead_letter_entry_is_retried_only_once(session_factory) -> None:
    entry = await _dead_letter_one(session_factory)

    async with session_factory() as session, session.begin():
        first = await build_dead_letter_handler(session, POLICY).retry_from_dead_letter(
            TENANT_ID, entry.id, ACTOR_ID
        )

    with pytest.raises(InvalidStateTransitionException):
        async with session_factory() as session, session.begin():
            await build_dead_letter_handler(session, POLICY).retry_from_dead_letter(
                TENANT_ID, entry.id, ACTOR_ID
            )

    async with session_factory() as session:
        retried = await session.scalar(
            select(func.count())
            .select_from(WorkflowExecution)
            .where(WorkflowExecution.retried_from_dead_letter_id == entry.id)
        )
        after = await build_dead_letter_handler(session, POLICY).get(TENANT_ID, entry.id)
    assert retried == 1
    assert after.retry_execution_id == first.id


async def test_mark_retrying_does_not_reopen_a_resolved_entry(session_factory) -> None:
    entry = await _dead_letter_one(session_factory)

    async with session_factory() as session, session.begin():
        repo = DeadLetterRepository(session)
        await repo.mark_resolved(entry.id, TENANT_ID, actor_id=ACTOR_ID, at=utc_now(), notes=None)
        marked = await repo.mark_retrying(
            entry.id, TENANT_ID, actor_id=ACTOR_ID, at=utc_now(), retry_execution_id="ex-late"
        )

    assert marked is None
    async with session_factory() as session:
        after = await DeadLetterRepository(session).get_by_id(entry.id, TENANT_ID)
    assert after.status == "resolved"
    assert after.retry_execution_id is None


class TakeoverExecutor(RecordingExecutor):
    """Succeeds, but meanwhile another worker reclaims the execution."""

    def __init__(self, session_factory) -> None:
        super().__init__()
        self.session_factory = session_factory

    async def execute(self, action_kind, parameters, trigger_data):
        async with self.session_factory() as session, session.begin():
            await session.execute(
                update(WorkflowExecution)
                .where(WorkflowExecution.status == "running")
                .values(claimed_by="other-worker")
            )
        return await super().execute(action_kind, parameters, trigger_data)


async def test_runner_stops_when_claim_is_lost_between_actions(session_factory) -> None:
    await create_workflow(session_factory, actions=TWO_STEP_ACTIONS)
    [queued] = await _ingest(session_factory, _order_update("cancelled"))
    first = TakeoverExecutor(session_factory)
    second = RecordingExecutor()

    await ExecutionRunner(session_factory, _registry(first, second), policy=POLICY).run_once()

    assert len(first.calls) == 1
    assert second.calls == []
    execution = await _get_execution(session_factory, queued.id)
    assert execution.status == "running"
    assert execution.claimed_by == "other-worker"


async def test_extend_claim_renews_only_the_holders_lease(session_factory) -> None:
    await create_workflow(session_factory)
    [queued] = await _ingest(session_factory, _order_update("cancelled"))
    async with session_factory() as session, session.begin():
        await WorkflowExecutionRepository(session).claim_next("worker-a", -1)

    async with session_factory() as session, session.begin():
        repo = WorkflowExecutionRepository(session)
        assert not await repo.extend_claim(queued.id, "worker-b", 300)
        assert await repo.extend_claim(queued.id, "worker-a", 300)

    async with session_factory() as session:
        expired = await WorkflowExecutionRepository(session).get_expired_claims()
    assert expired == []


async def test_run_now_queues_manual_execution(session_factory) -> None:
    workflow = await create_workflow(session_factory)
    async with session_factory() as session, session.begin():
        execution = await WorkflowEngine.for_session(session).run_now(
            TENANT_ID, workflow.id, {"order_id": "ord-9"}, ACTOR_ID
        )
    assert execution.trigger_data["trigger_type"] == "manual"
    assert execution.trigger_data["payload"] == {"order_id": "ord-9"}
    assert execution.workflow_version == 1
