"""Tenant context middleware.

Publishes a well-formed X-Tenant-ID to the request context so database
sessions can run SET LOCAL app.current_tenant_id and log records carry the
tenant. A missing or malformed header is not rejected here; routes enforce
it through the get_tenant_id dependency, and /health needs no tenant.
"""

from __future__ import annotations

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import get_settings
from app.core.request_context import current_tenant_id, is_valid_tenant_id_format


def TenantContextMiddleware(app: Callable) -> Callable:
    """Set the request's tenant in context for the duration of the call."""

    class _Middleware(BaseHTTPMiddleware):
        async def dispatch(self, request: Request, call_next: Callable) -> Response:
            value = (request.headers.get(get_settings().tenant_header_name) or "").strip()
            token = current_tenant_id.set(value if is_valid_tenant_id_format(value) else None)
            try:
                return await call_next(request)
            finally:
                current_tenant_id.reset(token)

    return _Middleware(app)
