"""Messaging: mutation event buses (in-process queue, Redis pub/sub)."""

from app.infrastructure.messaging.mutation_bus import (
    InProcessMutationBus,
    RedisMutationBus,
    create_mutation_bus,
)

__all__ = [
    "InProcessMutationBus",
    "RedisMutationBus",
    "create_mutation_bus",
]
