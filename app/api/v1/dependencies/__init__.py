"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for tenant/actor headers and application use cases.
All use cases are built from infrastructure implementations here;
routes depend only on these dependencies, not on infra directly.
"""

from .dead_letter import get_dead_letter_handler, get_dead_letter_handler_for_write
from .tenant import get_actor_id, get_tenant_id
from .workflow import (
    get_restore_version_use_case,
    get_version_ledger,
    get_workflow_engine_for_write,
    get_workflow_execution_repo,
    get_workflow_registry,
    get_workflow_registry_for_write,
)

__all__ = [
    "get_actor_id",
    "get_dead_letter_handler",
    "get_dead_letter_handler_for_write",
    "get_restore_version_use_case",
    "get_tenant_id",
    "get_version_ledger",
    "get_workflow_engine_for_write",
    "get_workflow_execution_repo",
    "get_workflow_registry",
    "get_workflow_registry_for_write",
]
