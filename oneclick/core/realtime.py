"""Realtime change channel.

The data services publish row events after a successful commit; pages
subscribe to the events they care about and re-fetch on notification.

``RealtimeChannel`` fans events out inside one process.
``RedisRealtimeChannel`` routes them through Redis pub/sub on
``realtime:<table>:<EVENT>`` channels so every worker sees every event.
"""

import asyncio
import json
from collections import defaultdict
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import Any

import structlog
from pydantic import BaseModel
from redis import asyncio as aioredis

from oneclick.core.redis_client import create_async_redis_client

logger = structlog.get_logger(__name__)

CHANNEL_PREFIX = "realtime"
RECONNECT_DELAY_SECONDS = 1.0


def channel_name(table: str, event: str) -> str:
    """Redis pub/sub channel carrying ``event`` rows of ``table``."""
    return f"{CHANNEL_PREFIX}:{table}:{event.upper()}"


class ChangeEvent(BaseModel):
    """A row change notification."""

    table: str
    event: str
    new: dict[str, Any]


ChangeHandler = Callable[[ChangeEvent], Awaitable[None]]


class Subscription:
    """Handle returned by ``RealtimeChannel.subscribe``."""

    def __init__(self, channel: "RealtimeChannel", key: tuple[str, str], handler: ChangeHandler):
        self._channel = channel
        self.key = key
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if self.active:
            self._channel._remove(self)
            self.active = False


class RealtimeChannel:
    """Fan-out of row events to subscribed handlers within this process."""

    def __init__(self) -> None:
        self._subscriptions: dict[tuple[str, str], list[Subscription]] = defaultdict(list)

    async def start(self) -> None:
        """Nothing to connect for the in-process channel."""

    async def stop(self) -> None:
        """Nothing to release for the in-process channel."""

    def subscribe(self, table: str, event: str, handler: ChangeHandler) -> Subscription:
        """Register ``handler`` for ``event`` (e.g. ``INSERT``) on ``table``."""
        key = (table, event.upper())
        subscription = Subscription(self, key, handler)
        self._subscriptions[key].append(subscription)
        logger.debug("realtime_subscribed", table=table, event_type=key[1])
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        handlers = self._subscriptions.get(subscription.key, [])
        if subscription in handlers:
            handlers.remove(subscription)

    def subscriber_count(self, table: str, event: str) -> int:
        """Number of live subscriptions for a table/event pair."""
        return len(self._subscriptions.get((table, event.upper()), []))

    async def publish(self, table: str, event: str, record: dict[str, Any]) -> int:
        """
        Deliver an event to every subscriber.

        Returns:
            Number of handlers that ran without error
        """
        return await self.deliver(ChangeEvent(table=table, event=event.upper(), new=record))

    async def deliver(self, change: ChangeEvent) -> int:
        """
        Run the local handlers subscribed to ``change``.

        A failing handler is logged and skipped so one broken page does not
        starve the others.
        """
        delivered = 0
        for subscription in list(self._subscriptions.get((change.table, change.event), [])):
            try:
                await subscription.handler(change)
                delivered += 1
            except Exception as e:
                logger.warning(
                    "realtime_handler_failed",
                    table=change.table,
                    event_type=change.event,
                    error=str(e),
                )
        return delivered


class RedisRealtimeChannel(RealtimeChannel):
    """
    Change channel shared by every worker process through Redis pub/sub.

    ``publish`` only sends to Redis. The listener task started by ``start``
    receives every realtime message, this process's own included, and hands
    it to the local subscribers.
    """

    def __init__(self, redis_client: aioredis.Redis):
        super().__init__()
        self.redis = redis_client
        self._listener: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the background listener if it is not running."""
        if self._listener is None or self._listener.done():
            self._listener = asyncio.create_task(self._listen())

    async def stop(self) -> None:
        """Stop the listener and close the Redis connection."""
        if self._listener is not None:
            self._listener.cancel()
            with suppress(asyncio.CancelledError):
                await self._listener
            self._listener = None
        await self.redis.aclose()
        logger.info("realtime_listener_stopped")

    async def publish(self, table: str, event: str, record: dict[str, Any]) -> int:
        """
        Send an event to every worker.

        Returns:
            Number of Redis subscribers that received it
        """
        payload = json.dumps(record, default=str)
        return await self.redis.publish(channel_name(table, event), payload)

    async def handle_message(self, message: dict[str, Any]) -> int:
        """Hand one pub/sub message to the local subscribers."""
        if message.get("type") != "pmessage":
            return 0

        try:
            _, table, event = message["channel"].split(":", 2)
            record = json.loads(message["data"])
        except (TypeError, ValueError):
            logger.warning("realtime_message_malformed", channel=str(message.get("channel")))
            return 0

        return await self.deliver(ChangeEvent(table=table, event=event, new=record))

    async def _consume(self) -> None:
        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        try:
            await pubsub.psubscribe(f"{CHANNEL_PREFIX}:*")
            logger.info("realtime_listener_started")
            async for message in pubsub.listen():
                await self.handle_message(message)
        finally:
            await pubsub.aclose()

    async def _listen(self) -> None:
        while True:
            try:
                await self._consume()
            except Exception as e:
                logger.warning("realtime_listener_failed", error=str(e))
            await asyncio.sleep(RECONNECT_DELAY_SECONDS)


_channel: RealtimeChannel | None = None


def get_realtime_channel() -> RealtimeChannel:
    """Get or create the process-wide realtime channel."""
    global _channel

    if _channel is None:
        _channel = RedisRealtimeChannel(create_async_redis_client())

    return _channel
