"""Timezone-aware UTC helpers for execution scheduling and row timestamps.

SQLite hands back naive values from DateTime(timezone=True) columns, so every
repository converts rows through ensure_utc before they reach the domain.
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_after(seconds: float, *, reference: datetime | None = None) -> datetime:
    """Moment `seconds` after reference (default now); used for claim leases and retry backoff."""
    return (reference or utc_now()) + timedelta(seconds=seconds)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Treat naive values as UTC; convert aware values to UTC. None passes through."""
    if dt is None:
        return None
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)
