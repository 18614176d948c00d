"""Mounts the v1 endpoint modules.

Everything except the health probes is tenant-scoped: the tenant router
requires a valid tenant header before any endpoint dependency runs.
"""

from fastapi import APIRouter, Depends

from app.api.v1.dependencies import get_tenant_id
from app.api.v1.endpoints import dead_letters, events, health, workflows

tenant_router = APIRouter(dependencies=[Depends(get_tenant_id)])
tenant_router.include_router(workflows.router, prefix="/workflows", tags=["workflows"])
tenant_router.include_router(dead_letters.router, prefix="/dead-letters", tags=["dead-letters"])
tenant_router.include_router(events.router, prefix="/events", tags=["events"])

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(tenant_router)
