"""Retry policy for failed workflow executions."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.core.config import Settings


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retries with capped exponential backoff.

    retry_count counts retries only: an execution is attempted at most
    max_retries + 1 times before it is dead-lettered.
    """

    max_retries: int = 3
    backoff_base_seconds: float = 5.0
    backoff_max_seconds: float = 300.0
    jitter: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            max_retries=settings.workflow_max_retries,
            backoff_base_seconds=settings.workflow_retry_backoff_base_seconds,
            backoff_max_seconds=settings.workflow_retry_backoff_max_seconds,
            jitter=settings.workflow_retry_jitter,
        )

    def should_retry(self, retry_count: int) -> bool:
        """Return True if an execution that has been retried retry_count times may retry again."""
        return retry_count < self.max_retries

    def backoff_seconds(self, retry_count: int) -> float:
        """Delay before retry number retry_count (1-based).

        base * 2^(retry_count - 1), capped, then +/- 20% when jitter is on.
        """
        exponent = max(0, retry_count - 1)
        raw = min(self.backoff_max_seconds, self.backoff_base_seconds * (2**exponent))
        if self.jitter:
            raw *= random.uniform(0.8, 1.2)
        return max(0.0, raw)
