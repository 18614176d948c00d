"""Mutation event ingestion API schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.shared.enums import MutationOperation


class MutationEventRequest(BaseModel):
    """Row mutation reported by the host datastore. Tenant comes from X-Tenant-ID."""

    table_name: str = Field(..., min_length=1, max_length=128)
    operation: MutationOperation
    old_row: dict[str, Any] | None = None
    new_row: dict[str, Any] | None = None
    event_id: str | None = Field(
        default=None,
        max_length=255,
        description="Source delivery id; redelivery with the same id enqueues nothing new",
    )
    occurred_at: datetime | None = None


class MutationEventAcceptedResponse(BaseModel):
    """202 body: published to the bus, or ingested inline when no bus runs."""

    status: Literal["published", "ingested"]
    queued_execution_ids: list[str] = Field(default_factory=list)
