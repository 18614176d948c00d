"""Pydantic request/response schemas for the API."""

from app.schemas.dead_letter import (
    DeadLetterResolveRequest,
    DeadLetterResponse,
    DeadLetterRetryResponse,
    DeadLetterSummaryResponse,
)
from app.schemas.event import MutationEventAcceptedResponse, MutationEventRequest
from app.schemas.health import HealthResponse
from app.schemas.workflow import (
    WorkflowCreateRequest,
    WorkflowExecutionResponse,
    WorkflowResponse,
    WorkflowUpdate,
    WorkflowVersionResponse,
)

__all__ = [
    "DeadLetterResolveRequest",
    "DeadLetterResponse",
    "DeadLetterRetryResponse",
    "DeadLetterSummaryResponse",
    "HealthResponse",
    "MutationEventAcceptedResponse",
    "MutationEventRequest",
    "WorkflowCreateRequest",
    "WorkflowExecutionResponse",
    "WorkflowResponse",
    "WorkflowUpdate",
    "WorkflowVersionResponse",
]
