"""Execution runner and worker pool.

A runner processes one execution in three phases, each with its own
session so no transaction stays open across executor I/O:

1. claim: conditional UPDATE queued -> running, load the pinned action list
2. run: call executors in declared order, stop at the first failure
3. record: succeeded, or failed -> retry/dead-letter, only while the claim is held

ExecutionWorkerPool runs N runners as asyncio tasks plus a reaper that turns
expired claims (crashed or stuck runners) into ClaimExpired failures.
"""

from __future__ import annotations

import asyncio
import contextlib
import traceback
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.dtos.execution import WorkflowExecutionResult
from app.application.services.retry_policy import RetryPolicy
from app.application.use_cases.executions.dead_letter_operations import DeadLetterHandler
from app.core.config import Settings
from app.domain.exceptions import ExecutionException
from app.domain.value_objects.workflow import ActionSpec, parse_actions
from app.infrastructure.persistence.repositories import (
    DeadLetterRepository,
    WorkflowDefinitionRepository,
    WorkflowExecutionRepository,
    WorkflowVersionRepository,
)
from app.infrastructure.services.action_executors import ActionExecutorRegistry
from app.shared.enums import ExecutionErrorType
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_worker_id

logger = get_logger(__name__)

_REAPER_BATCH_SIZE = 100


@dataclass
class _RunOutcome:
    execution_log: list[dict[str, Any]]
    error: ExecutionException | None = None
    actions: list[ActionSpec] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.error is None


def _failure_details(error: ExecutionException, attempt: int) -> dict[str, Any]:
    return {**error.details, "message": error.message, "attempt": attempt}


def build_dead_letter_handler(db: AsyncSession, policy: RetryPolicy) -> DeadLetterHandler:
    """DeadLetterHandler wired to SQL repositories on one session."""
    return DeadLetterHandler(
        WorkflowExecutionRepository(db),
        DeadLetterRepository(db),
        WorkflowDefinitionRepository(db),
        WorkflowVersionRepository(db),
        policy,
    )


class ExecutionRunner:
    """Claims and runs one execution at a time."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        executors: ActionExecutorRegistry,
        *,
        policy: RetryPolicy,
        visibility_timeout_seconds: float = 300,
        action_timeout_seconds: float = 120.0,
        worker_id: str | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._executors = executors
        self._policy = policy
        self._visibility_timeout = visibility_timeout_seconds
        self._action_timeout = action_timeout_seconds
        self.worker_id = worker_id or generate_worker_id()

    async def run_once(self) -> WorkflowExecutionResult | None:
        """Claim and fully process one execution; None when nothing is claimable."""
        async with self._session_factory() as session, session.begin():
            execution = await WorkflowExecutionRepository(session).claim_next(
                self.worker_id, self._visibility_timeout
            )
            if execution is None:
                return None
            outcome = await self._load_actions(session, execution)

        logger.info(
            "Runner %s claimed execution %s (workflow %s, tenant_id=%s, retry_count=%s)",
            self.worker_id,
            execution.id,
            execution.workflow_id,
            execution.tenant_id,
            execution.retry_count,
        )
        if outcome.succeeded:
            outcome = await self._run_actions(execution, outcome.actions)

        async with self._session_factory() as session, session.begin():
            await self._record(session, execution, outcome)
        return execution

    async def _load_actions(
        self, session: AsyncSession, execution: WorkflowExecutionResult
    ) -> _RunOutcome:
        """Return the action list of the pinned version (live definition if unpinned)."""
        log = list(execution.execution_log)
        raw_actions: list[dict[str, Any]] | None = None
        if execution.workflow_version is not None:
            version = await WorkflowVersionRepository(session).get_version(
                execution.workflow_id, execution.tenant_id, execution.workflow_version
            )
            if version is not None:
                raw_actions = version.actions
        if raw_actions is None:
            definition = await WorkflowDefinitionRepository(session).get_by_id(
                execution.workflow_id, execution.tenant_id
            )
            if definition is None:
                return _RunOutcome(
                    log,
                    ExecutionException(
                        f"Workflow {execution.workflow_id} not found",
                        ExecutionErrorType.WORKFLOW_NOT_FOUND.value,
                    ),
                )
            raw_actions = definition.actions
        try:
            return _RunOutcome(log, actions=parse_actions(raw_actions))
        except ValueError as e:
            return _RunOutcome(
                log,
                ExecutionException(
                    f"Stored action list is invalid: {e}",
                    ExecutionErrorType.ACTION_FAILED.value,
                ),
            )

    async def _run_actions(
        self, execution: WorkflowExecutionResult, actions: list[ActionSpec]
    ) -> _RunOutcome:
        log = list(execution.execution_log)
        attempt = execution.retry_count + 1
        for index, action in enumerate(actions):
            kind = action.action_kind.value
            if index > 0 and not await self._renew_claim(execution):
                logger.warning(
                    "Runner %s lost claim on execution %s before action %d; stopping",
                    self.worker_id,
                    execution.id,
                    index,
                )
                return _RunOutcome(
                    log,
                    ExecutionException(
                        f"Claim lost before action {index}",
                        ExecutionErrorType.CLAIM_EXPIRED.value,
                        action_index=index,
                        action_kind=kind,
                    ),
                    actions,
                )
            entry: dict[str, Any] = {
                "attempt": attempt,
                "action_index": index,
                "action_kind": kind,
                "started_at": utc_now().isoformat(),
            }
            error = await self._run_action(execution, index, action, entry)
            entry["finished_at"] = utc_now().isoformat()
            log.append(entry)
            if error is not None:
                logger.warning(
                    "Execution %s action %d (%s) failed on attempt %d: %s",
                    execution.id,
                    index,
                    kind,
                    attempt,
                    error.message,
                )
                return _RunOutcome(log, error, actions)
        return _RunOutcome(log, None, actions)

    async def _renew_claim(self, execution: WorkflowExecutionResult) -> bool:
        async with self._session_factory() as session, session.begin():
            return await WorkflowExecutionRepository(session).extend_claim(
                execution.id, self.worker_id, self._visibility_timeout
            )

    async def _run_action(
        self,
        execution: WorkflowExecutionResult,
        index: int,
        action: ActionSpec,
        entry: dict[str, Any],
    ) -> ExecutionException | None:
        """Run one action and fill its log entry; return the failure, if any."""
        kind = action.action_kind.value
        try:
            executor = self._executors.get(kind)
            result = await asyncio.wait_for(
                executor.execute(kind, dict(action.parameters), execution.trigger_data),
                timeout=self._action_timeout,
            )
        except ExecutionException as e:
            error = e
            error.details.update(action_index=index, action_kind=kind)
        except TimeoutError:
            error = ExecutionException(
                f"Action timed out after {self._action_timeout}s",
                ExecutionErrorType.ACTION_TIMEOUT.value,
                action_index=index,
                action_kind=kind,
            )
        except Exception as e:
            error = ExecutionException(
                str(e) or type(e).__name__,
                ExecutionErrorType.ACTION_EXCEPTION.value,
                action_index=index,
                action_kind=kind,
                exception_type=type(e).__name__,
                traceback=traceback.format_exc(),
            )
        else:
            if result.success:
                entry.update(status="success", output=result.output)
                return None
            error = ExecutionException(
                result.error or "Action reported failure",
                ExecutionErrorType.ACTION_FAILED.value,
                action_index=index,
                action_kind=kind,
                output=result.output,
            )
        entry.update(status="failed", error=error.message, error_type=error.error_type)
        return error

    async def _record(
        self,
        session: AsyncSession,
        execution: WorkflowExecutionResult,
        outcome: _RunOutcome,
    ) -> None:
        repo = WorkflowExecutionRepository(session)
        if outcome.succeeded:
            if await repo.mark_succeeded(execution.id, self.worker_id, outcome.execution_log):
                logger.info("Execution %s succeeded", execution.id)
            else:
                logger.warning(
                    "Runner %s lost claim on execution %s; success discarded",
                    self.worker_id,
                    execution.id,
                )
            return

        error = outcome.error
        assert error is not None
        failed = await repo.mark_failed(
            execution.id,
            self.worker_id,
            last_error=error.message,
            error_details=_failure_details(error, execution.retry_count + 1),
            execution_log=outcome.execution_log,
        )
        if failed is None:
            logger.warning(
                "Runner %s lost claim on execution %s; failure discarded",
                self.worker_id,
                execution.id,
            )
            return
        await build_dead_letter_handler(session, self._policy).handle_failure(failed)

    async def reap_expired_claims(self) -> int:
        """Fail running executions whose claim expired; return how many were reaped."""
        reaped = 0
        async with self._session_factory() as session, session.begin():
            repo = WorkflowExecutionRepository(session)
            handler = build_dead_letter_handler(session, self._policy)
            now = utc_now()
            for execution in await repo.get_expired_claims(_REAPER_BATCH_SIZE):
                error = ExecutionException(
                    f"Claim by {execution.claimed_by} expired before completion",
                    ExecutionErrorType.CLAIM_EXPIRED.value,
                    claimed_by=execution.claimed_by,
                )
                log = [
                    *execution.execution_log,
                    {
                        "attempt": execution.retry_count + 1,
                        "status": "claim_expired",
                        "claimed_by": execution.claimed_by,
                        "at": now.isoformat(),
                    },
                ]
                failed = await repo.mark_failed(
                    execution.id,
                    None,
                    last_error=error.message,
                    error_details=_failure_details(error, execution.retry_count + 1),
                    execution_log=log,
                    expired_before=now,
                )
                if failed is None:
                    continue
                logger.warning(
                    "Reaped expired claim on execution %s (claimed_by=%s, tenant_id=%s)",
                    execution.id,
                    execution.claimed_by,
                    execution.tenant_id,
                )
                await handler.handle_failure(failed)
                reaped += 1
        return reaped


class ExecutionWorkerPool:
    """N runner tasks plus one reaper task, started and stopped by lifespan."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        executors: ActionExecutorRegistry,
        settings: Settings,
    ) -> None:
        self._session_factory = session_factory
        self._executors = executors
        self._concurrency = settings.workflow_runner_concurrency
        self._poll_interval = settings.workflow_runner_poll_interval_seconds
        self._reap_interval = max(1.0, settings.workflow_visibility_timeout_seconds / 4)
        self._runner_kwargs: dict[str, Any] = {
            "policy": RetryPolicy.from_settings(settings),
            "visibility_timeout_seconds": settings.workflow_visibility_timeout_seconds,
            "action_timeout_seconds": settings.workflow_action_timeout_seconds,
        }
        self._stopping = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def start(self) -> None:
        if self._tasks:
            return
        self._stopping.clear()
        for i in range(self._concurrency):
            runner = ExecutionRunner(
                self._session_factory,
                self._executors,
                worker_id=generate_worker_id(f"runner{i}"),
                **self._runner_kwargs,
            )
            self._tasks.append(
                asyncio.create_task(self._worker_loop(runner), name=f"workflow-runner-{i}")
            )
        reaper = ExecutionRunner(
            self._session_factory,
            self._executors,
            worker_id=generate_worker_id("reaper"),
            **self._runner_kwargs,
        )
        self._tasks.append(
            asyncio.create_task(self._reaper_loop(reaper), name="workflow-reaper")
        )
        logger.info("Execution worker pool started (concurrency=%d)", self._concurrency)

    async def stop(self) -> None:
        """Signal workers, then cancel whatever is still waiting."""
        self._stopping.set()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("Execution worker pool stopped")

    async def _sleep(self, seconds: float) -> None:
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)

    async def _worker_loop(self, runner: ExecutionRunner) -> None:
        while not self._stopping.is_set():
            try:
                processed = await runner.run_once()
            except Exception:
                logger.exception("Runner %s iteration failed", runner.worker_id)
                processed = None
            if processed is None:
                await self._sleep(self._poll_interval)

    async def _reaper_loop(self, reaper: ExecutionRunner) -> None:
        while not self._stopping.is_set():
            try:
                await reaper.reap_expired_claims()
            except Exception:
                logger.exception("Reaper iteration failed")
            await self._sleep(self._reap_interval)
