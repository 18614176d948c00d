"""Logging configuration for the workflow engine.

Every record is stamped with the request id and tenant of the HTTP request
being handled ("-" for the runner, reaper, and bus consumer), so API writes
and the executions they queue can be followed through one log stream.
"""

import logging
import sys

from app.core.config import get_settings
from app.core.request_context import get_request_id, get_tenant_id

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s %(tenant_id)s] %(message)s"

# Drivers log every statement; keep them quiet unless database_echo is on.
_DRIVER_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncpg")


class RequestContextFilter(logging.Filter):
    """Copy request_id and tenant_id from the request context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        record.tenant_id = get_tenant_id() or "-"
        return True


def setup_logging() -> None:
    """Configure root logging once: stdout, DEBUG when settings.debug else INFO."""
    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        handlers=[handler],
    )
    if not settings.database_echo:
        for name in _DRIVER_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name (usually __name__)."""
    return logging.getLogger(name)
