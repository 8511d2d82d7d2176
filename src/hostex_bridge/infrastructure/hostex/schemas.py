"""Wire models for the Hostex v3 API."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Envelope(_Wire):
    request_id: str | None = None
    data: Any = None
    error_code: int | str | None = None
    error_msg: str | None = None


class GuestModel(_Wire):
    name: str | None = ""
    phone: str | None = ""
    email: str | None = ""


class ConversationModel(_Wire):
    id: str
    channel_type: str | None = ""
    last_message_at: datetime | None = None
    property_title: str | None = ""
    check_in_date: str | None = ""
    check_out_date: str | None = ""
    guest: GuestModel | None = None


class ConversationsData(_Wire):
    conversations: list[ConversationModel] = Field(default_factory=list)


class MessageModel(_Wire):
    id: str
    sender_role: str | None = ""
    display_type: str | None = ""
    content: str | None = ""
    attachment: Any = None
    created_at: datetime


class ActivityPropertyModel(_Wire):
    id: int = 0
    title: str | None = ""
    cover_url: str | None = ""


class ActivityModel(_Wire):
    activity_type: str | None = ""
    reservation_code: str | None = None
    check_in_date: str | None = ""
    check_out_date: str | None = ""
    property: ActivityPropertyModel | None = None


class ConversationDetailModel(_Wire):
    id: str
    channel_type: str | None = ""
    guest: GuestModel | None = None
    activities: list[ActivityModel] | None = None
    note: str | None = None
    messages: list[MessageModel] | None = None


class PropertyModel(_Wire):
    id: int
    title: str | None = ""
    address: str | None = ""
    timezone: str | None = ""


class PropertiesData(_Wire):
    properties: list[PropertyModel] = Field(default_factory=list)
    total: int = 0
