"""Mutation event buses: the channel from the host datastore to the engine.

InProcessMutationBus is an asyncio.Queue for single-process deployments and
tests. RedisMutationBus uses Redis pub/sub so several API processes can
publish to shared consumers. Both implement IMutationEventBus.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from collections.abc import AsyncIterator

import redis.asyncio as redis

from app.application.dtos.mutation_event import MutationEvent
from app.application.interfaces.services import IMutationEventBus
from app.core.config import Settings, get_settings
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

# Queued after close() so a blocked subscriber wakes up and stops.
_CLOSED = object()


class InProcessMutationBus:
    """Bounded asyncio.Queue bus. One logical consumer."""

    backend_name = "memory"

    def __init__(self, maxsize: int = 10_000) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    async def publish(self, event: MutationEvent) -> bool:
        """Enqueue without waiting; False when closed or full."""
        if self._closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "Mutation bus full, dropping event (tenant_id=%s, table=%s, event_id=%s)",
                event.tenant_id,
                event.table_name,
                event.event_id,
            )
            return False
        return True

    async def subscribe(self) -> AsyncIterator[MutationEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            assert isinstance(item, MutationEvent)
            yield item

    async def close(self) -> None:
        self._closed = True
        with contextlib.suppress(asyncio.QueueFull):
            self._queue.put_nowait(_CLOSED)

    def pending(self) -> int:
        return self._queue.qsize()


class RedisMutationBus:
    """Redis pub/sub bus on a single channel (settings.mutation_bus_channel)."""

    backend_name = "redis"

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        """Initialize. Pass redis_client for DI/testing."""
        self.redis = redis_client
        self.settings = settings or get_settings()
        self.channel = self.settings.mutation_bus_channel
        self._connected = redis_client is not None
        self._closed = False

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self._connected:
            return
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=(
                        self.settings.redis_password.get_secret_value()
                        if self.settings.redis_password
                        else None
                    ),
                    decode_responses=True,
                    socket_connect_timeout=5,
                )
                await self.redis.ping()
                self._connected = True
                logger.info("Redis mutation bus connected (channel=%s)", self.channel)
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Redis mutation bus connection failed: %s", e)
                self._connected = False
                self.redis = None

    def is_available(self) -> bool:
        """Return True if Redis is connected."""
        return self._connected and self.redis is not None

    async def publish(self, event: MutationEvent) -> bool:
        """Publish event as JSON.

        False if Redis is unavailable, the publish fails, or no consumer is
        subscribed (Redis drops such messages), so the caller can ingest inline.
        """
        if not self.is_available() or self.redis is None:
            logger.warning("Redis not available, mutation event not published")
            return False
        try:
            receivers = await self.redis.publish(self.channel, json.dumps(event.to_dict()))
        except redis.RedisError:
            logger.exception(
                "Failed to publish mutation event (tenant_id=%s, event_id=%s)",
                event.tenant_id,
                event.event_id,
            )
            return False
        if receivers == 0:
            logger.warning(
                "No mutation consumer subscribed to %s (tenant_id=%s, event_id=%s)",
                self.channel,
                event.tenant_id,
                event.event_id,
            )
            return False
        return True

    async def subscribe(self) -> AsyncIterator[MutationEvent]:
        """Yield events from the channel; malformed messages are logged and skipped.

        Returns once the bus is closed. Connection errors propagate so the
        consumer can back off and subscribe again.
        """
        if self._closed:
            return
        if not self.is_available():
            await self.connect()
        if self.redis is None:
            raise redis.ConnectionError("Redis not available for mutation bus subscription")
        pubsub = self.redis.pubsub()
        try:
            await pubsub.subscribe(self.channel)
            logger.info("Subscribed to %s", self.channel)
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    event = MutationEvent.from_dict(json.loads(message["data"]))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                    logger.exception("Failed to parse mutation event message")
                    continue
                yield event
            if not self._closed:
                raise redis.ConnectionError(f"Subscription to {self.channel} ended")
        finally:
            with contextlib.suppress(redis.RedisError):
                await pubsub.unsubscribe(self.channel)
            with contextlib.suppress(redis.RedisError):
                await pubsub.aclose()
            logger.info("Unsubscribed from %s", self.channel)

    async def close(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        self._closed = True
        if self.redis:
            await self.redis.aclose()
            self._connected = False
            logger.info("Redis mutation bus disconnected")


async def create_mutation_bus(settings: Settings) -> IMutationEventBus:
    """Build and connect the configured bus (mutation_bus_backend)."""
    if settings.mutation_bus_backend == "redis":
        bus = RedisMutationBus(settings=settings)
        await bus.connect()
        return bus
    return InProcessMutationBus(maxsize=settings.mutation_bus_queue_size)
