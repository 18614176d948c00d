"""Tenant and actor dependencies (request headers)."""

from __future__ import annotations

from fastapi import HTTPException, Request

from app.core.config import get_settings
from app.core.request_context import (
    ACTOR_ID_MAX_LENGTH,
    is_valid_actor_id,
    is_valid_tenant_id_format,
)


def _required_header(request: Request, name: str) -> str:
    value = (request.headers.get(name) or "").strip()
    if not value:
        raise HTTPException(status_code=400, detail=f"Missing required header: {name}")
    return value


async def get_tenant_id(request: Request) -> str:
    """Tenant of every workflow, execution, and dead-letter route."""
    value = _required_header(request, get_settings().tenant_header_name)
    if not is_valid_tenant_id_format(value):
        raise HTTPException(
            status_code=400,
            detail="Invalid tenant ID format (alphanumeric, hyphen, underscore; max 64 characters)",
        )
    return value


async def get_actor_id(request: Request) -> str:
    """Acting user recorded on registry writes and dead-letter operations."""
    value = _required_header(request, get_settings().actor_header_name)
    if not is_valid_actor_id(value):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid actor ID (printable, max {ACTOR_ID_MAX_LENGTH} characters)",
        )
    return value
