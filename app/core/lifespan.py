"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (action executors,
mutation bus and its consumer, worker pool, DB engine dispose).
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from app.core.config import get_settings
from app.infrastructure.messaging.mutation_bus import create_mutation_bus
from app.infrastructure.persistence import database
from app.infrastructure.services.action_executors import build_default_registry
from app.infrastructure.services.execution_runner import ExecutionWorkerPool
from app.infrastructure.services.workflow_engine import run_mutation_consumer
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


async def stop_background_task(task: asyncio.Task[None]) -> None:
    """Cancel and await a lifespan task; its failure is logged, never raised."""
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.exception("Background task %s exited with an error", task.get_name())


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: shared HTTP client and executor registry, mutation bus and
    its consumer task, worker pool (if enabled). Shutdown runs in reverse,
    then disposes the SQL engine.
    """
    settings = get_settings()

    # ---- Startup ----
    # Shared HTTP client for the webhook executor (connection reuse).
    app.state.http_client = httpx.AsyncClient(timeout=30.0)
    app.state.action_executors = build_default_registry(http_client=app.state.http_client)

    session_factory = database.get_session_factory()

    bus = await create_mutation_bus(settings)
    app.state.mutation_bus = bus
    app.state.mutation_consumer_task = asyncio.create_task(
        run_mutation_consumer(bus, session_factory), name="mutation-consumer"
    )
    logger.info("Mutation bus started (backend=%s)", settings.mutation_bus_backend)

    if settings.workflow_runner_enabled:
        pool = ExecutionWorkerPool(session_factory, app.state.action_executors, settings)
        pool.start()
        app.state.worker_pool = pool
    else:
        app.state.worker_pool = None
        logger.info("Workflow runner disabled (WORKFLOW_RUNNER_ENABLED=false)")

    yield

    # ---- Shutdown ----
    try:
        if app.state.worker_pool is not None:
            await app.state.worker_pool.stop()
        try:
            await bus.close()
        except Exception:
            logger.exception("Mutation bus close failed")
        await stop_background_task(app.state.mutation_consumer_task)
        app.state.mutation_bus = None
        logger.info("Mutation bus stopped")
    finally:
        await app.state.http_client.aclose()
        app.state.http_client = None
        await database.dispose_engine()
        logger.info("Database engine disposed")
