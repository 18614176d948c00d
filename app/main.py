"""ASGI entry point for the workflow automation engine.

`uvicorn app.main:app` serves the v1 API; background pieces (mutation bus
consumer, worker pool) start in app.core.lifespan. create_app() reads
settings when called, so tests set DATABASE_URL before importing this module.
"""

from fastapi import FastAPI

from app.api.v1 import api_router
from app.core.config import get_settings
from app.core.exception_handlers import register_exception_handlers
from app.core.lifespan import create_lifespan
from app.core.limiter import limiter
from app.middleware import RequestIDMiddleware, TenantContextMiddleware
from app.shared.telemetry import setup_logging


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    app.state.limiter = limiter
    register_exception_handlers(app)

    # Last added is outermost: request ID wraps tenant context.
    app.add_middleware(TenantContextMiddleware)
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
