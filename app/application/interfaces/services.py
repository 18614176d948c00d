"""Service interfaces (ports) for the application layer.

Protocols define contracts for collaborators the engine calls but does not
implement: action executors supplied by the host, and the event bus the
host publishes mutation events to.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.execution import ActionResult
    from app.application.dtos.mutation_event import MutationEvent


# Action executor interface
class IActionExecutor(Protocol):
    """Protocol for executing one action of a workflow.

    Implemented by host modules (notification, inventory, CRM sync...).
    Executors must be idempotent: the engine delivers at-least-once.
    """

    async def execute(
        self,
        action_kind: str,
        parameters: dict[str, Any],
        trigger_data: dict[str, Any],
    ) -> ActionResult:
        """Run the action; return ActionResult(success=False, error=...) on failure."""


# Mutation event bus interface
class IMutationEventBus(Protocol):
    """Protocol for the channel between the host's datastore and the engine."""

    async def publish(self, event: MutationEvent) -> bool:
        """Publish an event; False if it may not reach a consumer (ingest inline then)."""

    def subscribe(self) -> AsyncIterator[MutationEvent]:
        """Yield events until closed; raise on a broken connection so callers can resubscribe."""

    async def close(self) -> None:
        """Release bus resources."""
