"""Logging configured with request id and tenant on every record."""

from app.shared.telemetry.logging import RequestContextFilter, get_logger, setup_logging

__all__ = ["RequestContextFilter", "get_logger", "setup_logging"]
