"""Short-window memory of message bodies we just sent.

Hostex gives no correlation id for a sent message, so a polled host message
is matched back to our send by body and age alone. Two identical bodies
sent through different channels inside the window collide; the second
one is suppressed too.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta

from hostex_bridge.domain.value_objects.enums import SenderRole

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(minutes=2)


class EchoCache:
    def __init__(self, window: timedelta = DEFAULT_WINDOW) -> None:
        self._window = window
        self._sent: dict[str, datetime] = {}
        self._lock = asyncio.Lock()

    @property
    def window(self) -> timedelta:
        return self._window

    def _sweep(self, now: datetime) -> None:
        expired = [body for body, sent_at in self._sent.items() if now - sent_at >= self._window]
        for body in expired:
            del self._sent[body]

    async def record_sent(self, body: str, now: datetime) -> None:
        if not body:
            return
        async with self._lock:
            self._sweep(now)
            self._sent[body] = now

    async def should_suppress(self, body: str, role: SenderRole, now: datetime) -> bool:
        if role != SenderRole.HOST:
            return False
        async with self._lock:
            self._sweep(now)
            sent_at = self._sent.get(body)
        return sent_at is not None and now - sent_at < self._window

    async def size(self) -> int:
        async with self._lock:
            return len(self._sent)
