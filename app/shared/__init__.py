"""Shared utilities: enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from app.shared.enums import (
    DeadLetterStatus,
    ExecutionErrorType,
    MutationOperation,
    WorkflowExecutionStatus,
)
from app.shared.utils import (
    ensure_utc,
    generate_cuid,
    generate_worker_id,
    utc_after,
    utc_now,
)

__all__ = [
    "DeadLetterStatus",
    "ExecutionErrorType",
    "MutationOperation",
    "WorkflowExecutionStatus",
    "generate_cuid",
    "generate_worker_id",
    "utc_now",
    "utc_after",
    "ensure_utc",
]
