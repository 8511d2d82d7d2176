"""Bridge framework seam over Redis.

The framework keeps one hash field per room it has created
(``<conversation id>/<login id>`` -> room id) and consumes remote events
from a stream we append to.
"""
from __future__ import annotations

import logging

import redis.asyncio as aioredis

from hostex_bridge.application.dto.events import RemoteEvent
from hostex_bridge.domain.value_objects.ids import PortalKey
from hostex_bridge.infrastructure.bus.serializer import serialize_event

logger = logging.getLogger(__name__)


class RedisBridgeSink:
    """Implements application.ports.bridge.BridgeSink."""

    def __init__(self, redis: aioredis.Redis, events_stream: str, rooms_key: str) -> None:
        self._redis = redis
        self._events_stream = events_stream
        self._rooms_key = rooms_key

    async def room_exists(self, portal_key: PortalKey) -> bool:
        return bool(await self._redis.hexists(self._rooms_key, str(portal_key)))

    async def queue_event(self, login_id: str, event: RemoteEvent) -> None:
        entry_id = await self._redis.xadd(self._events_stream, serialize_event(login_id, event))
        logger.debug("Queued %s for %s as %s", event.type, event.portal_key, entry_id)
