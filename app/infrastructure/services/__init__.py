"""Infrastructure services: ingestion engine, execution runner, action executors."""

from app.infrastructure.services.action_executors import (
    ActionExecutorRegistry,
    LogActionExecutor,
    WebhookActionExecutor,
    build_default_registry,
)
from app.infrastructure.services.execution_runner import (
    ExecutionRunner,
    ExecutionWorkerPool,
)
from app.infrastructure.services.workflow_engine import (
    WorkflowEngine,
    run_mutation_consumer,
)

__all__ = [
    "ActionExecutorRegistry",
    "ExecutionRunner",
    "ExecutionWorkerPool",
    "LogActionExecutor",
    "WebhookActionExecutor",
    "WorkflowEngine",
    "build_default_registry",
    "run_mutation_consumer",
]
