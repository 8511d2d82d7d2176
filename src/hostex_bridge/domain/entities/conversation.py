from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from hostex_bridge.domain.entities.message import Message


@dataclass(frozen=True, slots=True)
class Guest:
    name: str = ""
    phone: str = ""
    email: str = ""


@dataclass(frozen=True, slots=True)
class Conversation:
    id: str
    channel_type: str
    last_message_at: datetime | None
    property_title: str
    check_in_date: str
    check_out_date: str
    guest: Guest


@dataclass(frozen=True, slots=True)
class ActivityProperty:
    id: int
    title: str
    cover_url: str = ""


@dataclass(frozen=True, slots=True)
class Activity:
    activity_type: str
    reservation_code: str | None
    check_in_date: str
    check_out_date: str
    property: ActivityProperty


@dataclass(frozen=True, slots=True)
class ConversationDetail:
    id: str
    channel_type: str
    guest: Guest
    activities: list[Activity] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    note: str | None = None
