"""Redis Pub/Sub change-feed listener."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

OnRawEventCallback = Callable[[str], Coroutine[Any, Any, Any]]


class RedisChangeFeedSubscriber:
    """Background task that listens to a Redis channel and hands each payload to a callback.

    The callback is expected to log its own failures; anything it raises is
    logged here and the listener keeps going. Lost connections are retried
    after ``retry_seconds``.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        callback: OnRawEventCallback,
        *,
        retry_seconds: float = 5.0,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._callback = callback
        self._retry_seconds = retry_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name="redis-change-feed")
        logger.info("Change feed listener started on channel=%s", self._channel)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Change feed listener stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self._listen()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(
                    "Change feed connection error, retrying in %.0fs", self._retry_seconds,
                )
                await asyncio.sleep(self._retry_seconds)

    async def _listen(self) -> None:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    await self._callback(message["data"])
                except Exception:
                    logger.exception("Error processing change feed message")
        finally:
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()
