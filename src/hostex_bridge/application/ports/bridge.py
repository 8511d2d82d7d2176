from __future__ import annotations

from typing import Protocol

from hostex_bridge.application.dto.events import RemoteEvent
from hostex_bridge.domain.value_objects.ids import PortalKey


class RoomDirectory(Protocol):
    async def room_exists(self, portal_key: PortalKey) -> bool: ...


class EventSink(Protocol):
    async def queue_event(self, login_id: str, event: RemoteEvent) -> None: ...


class BridgeSink(RoomDirectory, EventSink, Protocol):
    """Everything the sync engine needs from the bridging framework."""
