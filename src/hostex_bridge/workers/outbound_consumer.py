"""Consumer for messages authored on the bridge side, forwarded to Hostex."""
from __future__ import annotations

import logging
import uuid
from typing import Any

import redis.asyncio as aioredis

from hostex_bridge.application.exceptions import AppError
from hostex_bridge.config import settings
from hostex_bridge.infrastructure.bus.redis_streams import RedisStreamConsumer
from hostex_bridge.services import send_service
from hostex_bridge.services.runtime import BridgeRuntime

logger = logging.getLogger(__name__)

SEND_EVENT = "message.send"


class OutboundHandler:
    def __init__(self, runtime: BridgeRuntime) -> None:
        self._runtime = runtime

    async def __call__(self, event_type: str, fields: dict[str, Any]) -> None:
        if event_type != SEND_EVENT:
            logger.debug("Ignoring outbound event: %s", event_type)
            return

        login_id = fields.get("login_id", "")
        conversation_id = fields.get("conversation_id", "")
        try:
            session = self._runtime.get(login_id)
        except AppError as exc:
            # Nothing can deliver this entry; acknowledge it rather than retry forever.
            logger.warning("Dropping outbound message for %s: %s", login_id, exc.detail)
            return

        # Remote failures propagate so the entry stays pending.
        try:
            await send_service.send_message(
                session,
                conversation_id,
                fields.get("body", ""),
                fields.get("jpeg_base64", ""),
            )
        except AppError as exc:
            logger.warning("Dropping invalid outbound message for %s: %s", login_id, exc.detail)


def build_consumer(redis: aioredis.Redis, runtime: BridgeRuntime) -> RedisStreamConsumer:
    return RedisStreamConsumer(
        redis=redis,
        stream=settings.BRIDGE_OUTBOUND_STREAM,
        group=settings.BRIDGE_OUTBOUND_GROUP,
        consumer=f"consumer-{uuid.uuid4().hex[:8]}",
        callback=OutboundHandler(runtime),
        min_idle_ms=settings.BRIDGE_OUTBOUND_RETRY_IDLE_MS,
    )
