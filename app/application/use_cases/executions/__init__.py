"""Execution use cases: retry and dead-letter handling."""

from app.application.use_cases.executions.dead_letter_operations import (
    DeadLetterHandler,
    FailureOutcome,
)

__all__ = [
    "DeadLetterHandler",
    "FailureOutcome",
]
