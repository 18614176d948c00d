"""ASGI middleware that fills the per-request log context (request id, tenant)."""

from app.middleware.request_id import RequestIDMiddleware
from app.middleware.tenant_context import TenantContextMiddleware

__all__ = ["RequestIDMiddleware", "TenantContextMiddleware"]
