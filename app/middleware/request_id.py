"""Request ID middleware.

Forwards a well-formed client X-Request-ID or mints one, echoes it on the
response, and publishes it to the request context so every log line written
while handling the request carries it. Raw ASGI, no BaseHTTPMiddleware.
"""

import re
import uuid
from typing import Callable

from app.core.request_context import current_request_id

_REQUEST_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")


def _header_value(scope: dict, name: str) -> str | None:
    want = name.lower().encode()
    for key, value in scope.get("headers", []):
        if key.lower() == want:
            return value.decode("utf-8", errors="replace").strip()
    return None


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    """Attach a request id to scope state, the log context, and the response."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        supplied = _header_value(scope, header_name)
        # Unsafe client values are replaced, never logged.
        request_id = supplied if supplied and _REQUEST_ID_RE.fullmatch(supplied) else uuid.uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id
        token = current_request_id.set(request_id)

        async def send_with_header(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (header_name.encode(), request_id.encode()),
                ]
            await send(message)

        try:
            await app(scope, receive, send_with_header)
        finally:
            current_request_id.reset(token)

    return asgi_app
