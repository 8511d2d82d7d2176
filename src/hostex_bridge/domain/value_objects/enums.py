from __future__ import annotations

from enum import StrEnum


class SenderRole(StrEnum):
    HOST = "host"
    GUEST = "guest"


class PartType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


class RemoteEventType(StrEnum):
    ROOM_CREATE = "room.create"
    ROOM_UPDATE = "room.update"
    MESSAGE = "message"
    MESSAGE_SENT = "message.sent"
