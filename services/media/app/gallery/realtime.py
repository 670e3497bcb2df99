"""
Realtime row-change feed — Redis pub/sub.

Row changes on the content and like tables are bridged onto one channel per
table (see shared.database.redis_client). Each message is validated into a
typed event before the handler sees it; anything else is dropped.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from redis.exceptions import RedisError

from shared.database.redis_client import RedisClient, get_redis_client, realtime_channel
from shared.events.schemas import (
    CONTENT_TABLE,
    LIKES_TABLE,
    ContentUpdated,
    InvalidRealtimePayload,
    LikeChanged,
    parse_change,
)

logger = logging.getLogger(__name__)

EventHandler = Callable[[ContentUpdated | LikeChanged], Awaitable[None]]


class RealtimeSubscription:
    def __init__(
        self,
        redis: RedisClient,
        handler: EventHandler,
        tables: Iterable[str] = (CONTENT_TABLE, LIKES_TABLE),
    ) -> None:
        self._redis = redis
        self._handler = handler
        self._channels = [realtime_channel(table) for table in tables]
        self._pubsub = None
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Subscribe and start listening. Raises RedisError; nothing is left open then."""
        pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
        try:
            await pubsub.subscribe(*self._channels)
        except RedisError:
            await pubsub.aclose()
            raise
        self._pubsub = pubsub
        self._task = asyncio.create_task(self._listen(), name="gallery-realtime")
        logger.info("Subscribed to %s", ", ".join(self._channels))

    async def _listen(self) -> None:
        try:
            async for message in self._pubsub.listen():
                if message.get("type") != "message":
                    continue
                await self._dispatch(message)
        except RedisError as exc:
            logger.error("Realtime listener on %s stopped: %s", ", ".join(self._channels), exc)

    async def _dispatch(self, message: dict) -> None:
        try:
            event = parse_change(message.get("data"))
        except InvalidRealtimePayload as exc:
            logger.debug("Dropped realtime message on %s: %s", message.get("channel"), exc)
            return
        try:
            await self._handler(event)
        except Exception:
            logger.exception("Realtime handler failed for %s", event)

    async def close(self) -> None:
        """Stop the listener and release the pubsub connection. Never raises."""
        task, self._task = self._task, None
        pubsub, self._pubsub = self._pubsub, None
        try:
            if task is not None:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                except Exception:
                    logger.exception("Realtime listener had already failed")
        finally:
            if pubsub is not None:
                try:
                    await pubsub.unsubscribe(*self._channels)
                except RedisError as exc:
                    logger.warning("Unsubscribe from %s failed: %s", ", ".join(self._channels), exc)
                finally:
                    await pubsub.aclose()
                logger.info("Unsubscribed from %s", ", ".join(self._channels))


class RealtimeFeed:
    """Opens subscriptions on one Redis connection pool."""

    def __init__(self, redis: RedisClient) -> None:
        self._redis = redis

    @classmethod
    def from_url(cls, redis_url: str) -> RealtimeFeed:
        return cls(get_redis_client(redis_url))

    async def subscribe(self, handler: EventHandler) -> RealtimeSubscription:
        subscription = RealtimeSubscription(self._redis, handler)
        await subscription.start()
        return subscription
