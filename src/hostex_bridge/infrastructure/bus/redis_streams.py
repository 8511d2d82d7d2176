"""Redis Streams consumer for messages authored on the bridge side."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

OnStreamEventCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


class RedisStreamConsumer:
    """XREADGROUP-based consumer for a single stream + consumer group.

    Entries are acknowledged only after the callback succeeds; failed ones
    stay pending and are retried once they have idled past ``min_idle_ms``.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        stream: str,
        group: str,
        consumer: str,
        callback: OnStreamEventCallback,
        *,
        batch_size: int = 10,
        block_ms: int = 5000,
        min_idle_ms: int = 30000,
    ) -> None:
        self._redis = redis
        self._stream = stream
        self._group = group
        self._consumer = consumer
        self._callback = callback
        self._batch_size = batch_size
        self._block_ms = block_ms
        self._min_idle_ms = min_idle_ms

    async def ensure_group(self) -> None:
        try:
            await self._redis.xgroup_create(
                self._stream, self._group, id="$", mkstream=True
            )
            logger.info("Created consumer group %s on %s", self._group, self._stream)
        except aioredis.ResponseError as e:
            if "BUSYGROUP" in str(e):
                logger.debug("Consumer group %s already exists", self._group)
            else:
                raise

    async def consume_once(self) -> int:
        entries = await self._redis.xreadgroup(
            groupname=self._group,
            consumername=self._consumer,
            streams={self._stream: ">"},
            count=self._batch_size,
            block=self._block_ms,
        )
        handled = 0
        for _stream_name, messages in entries or []:
            handled += await self._handle(messages)
        return handled

    async def reclaim_pending(self) -> int:
        """Take over entries left unacknowledged for longer than ``min_idle_ms``.

        Covers entries whose callback failed here as well as entries read by
        a consumer that has since gone away.
        """
        result = await self._redis.xautoclaim(
            self._stream,
            self._group,
            self._consumer,
            min_idle_time=self._min_idle_ms,
            start_id="0-0",
            count=self._batch_size,
        )
        claimed = result[1] if result else []
        if claimed:
            logger.info("Reclaimed %d pending entries on %s", len(claimed), self._stream)
        return await self._handle(claimed)

    async def _handle(self, messages) -> int:
        handled = 0
        for msg_id, fields in messages:
            if not fields:
                # Trimmed from the stream while pending.
                await self._redis.xack(self._stream, self._group, msg_id)
                continue
            event_type = fields.get("event_type", "unknown")
            try:
                await self._callback(event_type, fields)
            except Exception:
                logger.exception("Error processing stream entry %s", msg_id)
                continue
            await self._redis.xack(self._stream, self._group, msg_id)
            handled += 1
        return handled

    async def run(self) -> None:
        await self.ensure_group()
        logger.info("Stream consumer started: stream=%s group=%s", self._stream, self._group)
        while True:
            try:
                await self.reclaim_pending()
                await self.consume_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Stream consumer error, retrying in 5s")
                await asyncio.sleep(5)
