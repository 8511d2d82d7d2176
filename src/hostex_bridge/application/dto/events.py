from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from hostex_bridge.domain.value_objects.enums import PartType, RemoteEventType
from hostex_bridge.domain.value_objects.ids import PortalKey


@dataclass(frozen=True, slots=True)
class ContentPart:
    type: PartType
    body: str
    uri: str | None = None
    mime_type: str | None = None
    size: int | None = None


@dataclass(frozen=True, slots=True)
class EventSender:
    is_from_me: bool
    sender: str = ""
    sender_login: str = ""


@dataclass(frozen=True, slots=True)
class RoomInfo:
    name: str
    topic: str


@dataclass(frozen=True, slots=True)
class RoomEvent:
    type: RemoteEventType
    portal_key: PortalKey
    timestamp: datetime | None
    info: RoomInfo
    sender: EventSender
    create_portal: bool = False
    backfill: bool = False


@dataclass(frozen=True, slots=True)
class MessageEvent:
    portal_key: PortalKey
    message_id: str
    timestamp: datetime
    sender: EventSender
    parts: list[ContentPart] = field(default_factory=list)
    type: RemoteEventType = RemoteEventType.MESSAGE


@dataclass(frozen=True, slots=True)
class MessageSentEvent:
    """Acknowledges a locally authored message; ``message_id`` is local-only."""

    portal_key: PortalKey
    message_id: str
    timestamp: datetime
    body: str
    type: RemoteEventType = RemoteEventType.MESSAGE_SENT


RemoteEvent = RoomEvent | MessageEvent | MessageSentEvent
