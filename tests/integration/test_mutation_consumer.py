"""Mutation bus consumer: resubscribes after a broken connection, stops cleanly."""

import asyncio

import pytest
import redis.asyncio as redis

from app.application.dtos.mutation_event import MutationEvent
from app.core.lifespan import stop_background_task
from app.infrastructure.persistence.repositories import WorkflowExecutionRepository
from app.infrastructure.services.workflow_engine import run_mutation_consumer
from app.shared.enums import MutationOperation
from tests.helpers import TENANT_ID, create_workflow


def _cancelled(event_id: str) -> MutationEvent:
    return MutationEvent(
        tenant_id=TENANT_ID,
        table_name="orders",
        operation=MutationOperation.UPDATE,
        old_row={"id": "ord-1", "status": "new"},
        new_row={"id": "ord-1", "status": "cancelled"},
        event_id=event_id,
    )


class FlakyBus:
    """Fails the first subscription, then delivers its events and closes."""

    def __init__(self, events: list[MutationEvent], failures: int = 1) -> None:
        self.events = events
        self.failures = failures
        self.subscriptions = 0

    async def publish(self, event: MutationEvent) -> bool:
        return False

    async def subscribe(self):
        self.subscriptions += 1
        if self.subscriptions <= self.failures:
            raise redis.ConnectionError("connection reset")
        for event in self.events:
            yield event

    async def close(self) -> None:
        pass


async def test_consumer_resubscribes_after_connection_error(session_factory) -> None:
    workflow = await create_workflow(session_factory)
    bus = FlakyBus([_cancelled("evt-1"), _cancelled("evt-2")], failures=2)

    await asyncio.wait_for(
        run_mutation_consumer(bus, session_factory, reconnect_delay_seconds=0),
        timeout=5,
    )

    assert bus.subscriptions == 3
    async with session_factory() as session:
        executions = await WorkflowExecutionRepository(session).get_by_workflow(
            workflow.id, TENANT_ID
        )
    assert len(executions) == 2


async def test_stop_background_task_swallows_task_failure() -> None:
    async def broken() -> None:
        raise redis.ConnectionError("listen failed")

    task = asyncio.create_task(broken(), name="mutation-consumer")
    await asyncio.sleep(0)

    await stop_background_task(task)

    assert task.done()


async def test_stop_background_task_cancels_running_task() -> None:
    started = asyncio.Event()

    async def forever() -> None:
        started.set()
        await asyncio.sleep(3600)

    task = asyncio.create_task(forever())
    await started.wait()

    await stop_background_task(task)

    assert task.cancelled()
    with pytest.raises(asyncio.CancelledError):
        task.result()
