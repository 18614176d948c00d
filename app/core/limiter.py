"""SlowAPI limiter shared by the app and the route modules.

Limits are counted per tenant and client address, so one noisy tenant
behind a shared gateway does not exhaust another tenant's budget.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.core.config import get_settings
from app.core.request_context import is_valid_tenant_id_format


def tenant_rate_limit_key(request: Request) -> str:
    tenant_id = (request.headers.get(get_settings().tenant_header_name) or "").strip()
    if not is_valid_tenant_id_format(tenant_id):
        tenant_id = "-"
    return f"{tenant_id}:{get_remote_address(request)}"


limiter = Limiter(key_func=tenant_rate_limit_key)

# Registry writes, manual runs, and dead-letter operations.
limit_writes = limiter.limit("120/minute")
# Host datastores push mutation events in bursts.
limit_event_ingest = limiter.limit("600/minute")
