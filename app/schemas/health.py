"""Liveness and readiness payloads."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class ReadinessResponse(BaseModel):
    """Readiness of the engine's moving parts.

    Only the database gates readiness; the bus and runner are reported so an
    operator can see events being ingested inline or executions piling up.
    """

    status: Literal["ok", "not_ready"] = "ok"
    database: Literal["ok", "unavailable"] = "ok"
    mutation_bus: str = Field(
        default="inline",
        description="Configured bus backend, or 'inline' when events are ingested in the request",
    )
    runner: Literal["running", "stopped", "disabled"] = "disabled"
