"""Liveness and readiness probes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.domain.exceptions import SqlNotConfiguredException
from app.infrastructure.persistence.database import get_session_factory
from app.schemas.health import HealthResponse, ReadinessResponse
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse()


def _runner_state(request: Request) -> str:
    pool = getattr(request.app.state, "worker_pool", None)
    if pool is None:
        return "disabled"
    return "running" if pool.running else "stopped"


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Database unavailable", "model": ReadinessResponse}},
)
async def readiness_check(request: Request) -> ReadinessResponse | JSONResponse:
    """200 when the database answers SELECT 1, else 503 with the same body shape."""
    bus = getattr(request.app.state, "mutation_bus", None)
    body = ReadinessResponse(
        mutation_bus=getattr(bus, "backend_name", "inline") if bus is not None else "inline",
        runner=_runner_state(request),
    )
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
    except (SqlNotConfiguredException, SQLAlchemyError, OSError) as e:
        logger.warning("Readiness check failed: %s", e)
        body.status = "not_ready"
        body.database = "unavailable"
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
