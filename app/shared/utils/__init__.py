"""Shared utilities: datetime, generators."""

from app.shared.utils.datetime import ensure_utc, utc_after, utc_now
from app.shared.utils.generators import generate_cuid, generate_worker_id

__all__ = [
    "generate_cuid",
    "generate_worker_id",
    "utc_now",
    "utc_after",
    "ensure_utc",
]
