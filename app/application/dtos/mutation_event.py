"""DTO for normalized row-mutation events consumed by the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.shared.enums import MutationOperation
from app.shared.utils.datetime import utc_now


@dataclass(frozen=True)
class MutationEvent:
    """Row X of table Y changed, for one tenant.

    event_id is the source's delivery id; when present it deduplicates
    redelivered events (one execution per workflow per event_id).
    """

    tenant_id: str
    table_name: str
    operation: MutationOperation
    old_row: dict[str, Any] | None = None
    new_row: dict[str, Any] | None = None
    event_id: str | None = None
    occurred_at: datetime = field(default_factory=utc_now)

    @property
    def row(self) -> dict[str, Any]:
        """Row conditions are evaluated against: new_row, falling back to old_row."""
        if self.new_row is not None:
            return self.new_row
        return self.old_row or {}

    def to_trigger_data(self) -> dict[str, Any]:
        """Self-contained snapshot stored on the execution (JSON-safe)."""
        return {
            "tenant_id": self.tenant_id,
            "table_name": self.table_name,
            "operation": self.operation.value,
            "old_row": self.old_row,
            "new_row": self.new_row,
            "event_id": self.event_id,
            "occurred_at": self.occurred_at.isoformat(),
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize for publishing on the event bus."""
        return self.to_trigger_data()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MutationEvent:
        """Deserialize from an event bus message."""
        occurred = data.get("occurred_at")
        return cls(
            tenant_id=data["tenant_id"],
            table_name=data["table_name"],
            operation=MutationOperation(data["operation"]),
            old_row=data.get("old_row"),
            new_row=data.get("new_row"),
            event_id=data.get("event_id"),
            occurred_at=datetime.fromisoformat(occurred) if occurred else utc_now(),
        )
