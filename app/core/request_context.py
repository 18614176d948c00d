"""Request-scoped context: tenant and request id, plus header validation.

The tenant-context middleware stores the tenant id here so database sessions
can run SET LOCAL app.current_tenant_id (RLS) without threading it through
every call. The request-id middleware stores the request id so log records
can carry it. Background workers run outside any request and see None.
"""

import re
from contextvars import ContextVar

# Tenant ids are interpolated into SET LOCAL; keep them short and inert.
TENANT_ID_MAX_LENGTH = 64
_TENANT_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")

# Actor ids land in created_by/updated_by and dead-letter audit columns.
ACTOR_ID_MAX_LENGTH = 255

current_tenant_id: ContextVar[str | None] = ContextVar("current_tenant_id", default=None)
current_request_id: ContextVar[str | None] = ContextVar("current_request_id", default=None)


def is_valid_tenant_id_format(value: str) -> bool:
    """Return True if value is a well-formed tenant id (alphanumeric, hyphen, underscore)."""
    return bool(value) and bool(_TENANT_ID_RE.fullmatch(value))


def is_valid_actor_id(value: str) -> bool:
    return bool(value) and len(value) <= ACTOR_ID_MAX_LENGTH and value.isprintable()


def get_tenant_id() -> str | None:
    """Return the tenant of the current request, if any."""
    return current_tenant_id.get()


def get_request_id() -> str | None:
    return current_request_id.get()
