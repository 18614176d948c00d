"""Maps engine, validation, HTTP, and rate-limit errors to JSON responses.

Every error body has the same shape, {"error", "message", "details",
"request_id"}, so a host system can correlate a failed call with the
engine's log lines.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.request_context import get_request_id
from app.domain.exceptions import WorkflowEngineException
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_STATUS_BY_ERROR_CODE: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "RESOURCE_NOT_FOUND": 404,
    "VERSION_CONFLICT": 409,
    "INVALID_STATE_TRANSITION": 409,
    "SERVICE_UNAVAILABLE": 503,
}


def error_response(
    status_code: int,
    error: str,
    message: Any,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "details": details if details is not None else {},
            "request_id": get_request_id(),
        },
        headers=headers,
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Pydantic errors without ctx/input/url (not always JSON-serializable)."""
    return [
        {k: v for k, v in err.items() if k not in ("ctx", "input", "url")}
        for err in exc.errors()
    ]


async def _engine_error(request: Request, exc: WorkflowEngineException) -> JSONResponse:
    status = _STATUS_BY_ERROR_CODE.get(exc.error_code, 400)
    if status >= 500:
        logger.error("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    return error_response(status, exc.error_code, exc.message, exc.details)


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(422, "VALIDATION_ERROR", "Request validation failed", jsonable_errors(exc))


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, "HTTP_ERROR", exc.detail, headers=exc.headers)


async def _rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded on %s %s: %s", request.method, request.url.path, exc.detail)
    return error_response(429, "RATE_LIMITED", f"Rate limit exceeded: {exc.detail}")


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if get_settings().debug else "Internal server error"
    return error_response(500, "INTERNAL_ERROR", message)


def register_exception_handlers(app: FastAPI) -> None:
    """Install all handlers; call once from create_app()."""
    app.add_exception_handler(WorkflowEngineException, _engine_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RateLimitExceeded, _rate_limited)
    app.add_exception_handler(Exception, _unhandled_error)
