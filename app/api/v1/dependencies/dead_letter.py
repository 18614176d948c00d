"""Dead-letter queue dependencies (composition root)."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.services.retry_policy import RetryPolicy
from app.application.use_cases.executions import DeadLetterHandler
from app.core.config import get_settings
from app.infrastructure.persistence.database import get_db, get_db_transactional
from app.infrastructure.services.execution_runner import build_dead_letter_handler


async def get_dead_letter_handler(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DeadLetterHandler:
    """Dead-letter handler for read operations (list, get, summary)."""
    return build_dead_letter_handler(db, RetryPolicy.from_settings(get_settings()))


async def get_dead_letter_handler_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> DeadLetterHandler:
    """Dead-letter handler for retry/resolve (transactional)."""
    return build_dead_letter_handler(db, RetryPolicy.from_settings(get_settings()))
