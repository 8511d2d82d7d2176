from __future__ import annotations

from datetime import datetime, timezone

from hostex_bridge.domain.entities.conversation import (
    Activity,
    ActivityProperty,
    Conversation,
    ConversationDetail,
    Guest,
)
from hostex_bridge.domain.entities.message import Message
from hostex_bridge.domain.entities.property import Property
from hostex_bridge.domain.value_objects.attachment import parse_attachment
from hostex_bridge.domain.value_objects.enums import SenderRole
from hostex_bridge.infrastructure.hostex.schemas import (
    ActivityModel,
    ConversationDetailModel,
    ConversationModel,
    GuestModel,
    MessageModel,
    PropertyModel,
)


def _utc(ts: datetime) -> datetime:
    # Hostex sometimes omits the zone; those timestamps are UTC.
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def guest_to_entity(model: GuestModel | None) -> Guest:
    if model is None:
        return Guest()
    return Guest(name=model.name or "", phone=model.phone or "", email=model.email or "")


def conversation_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        channel_type=model.channel_type or "",
        last_message_at=_utc(model.last_message_at) if model.last_message_at else None,
        property_title=model.property_title or "",
        check_in_date=model.check_in_date or "",
        check_out_date=model.check_out_date or "",
        guest=guest_to_entity(model.guest),
    )


def message_to_entity(model: MessageModel) -> Message:
    # Anything that is not explicitly the host is treated as the guest.
    role = SenderRole.HOST if (model.sender_role or "").lower() == SenderRole.HOST else SenderRole.GUEST
    return Message(
        id=model.id,
        sender_role=role,
        display_type=model.display_type or "",
        content=model.content or "",
        created_at=_utc(model.created_at),
        attachment=parse_attachment(model.attachment),
    )


def activity_to_entity(model: ActivityModel) -> Activity:
    prop = model.property
    return Activity(
        activity_type=model.activity_type or "",
        reservation_code=model.reservation_code,
        check_in_date=model.check_in_date or "",
        check_out_date=model.check_out_date or "",
        property=ActivityProperty(
            id=prop.id if prop else 0,
            title=(prop.title or "") if prop else "",
            cover_url=(prop.cover_url or "") if prop else "",
        ),
    )


def detail_to_entity(model: ConversationDetailModel) -> ConversationDetail:
    return ConversationDetail(
        id=model.id,
        channel_type=model.channel_type or "",
        guest=guest_to_entity(model.guest),
        activities=[activity_to_entity(a) for a in model.activities or []],
        messages=[message_to_entity(m) for m in model.messages or []],
        note=model.note,
    )


def property_to_entity(model: PropertyModel) -> Property:
    return Property(
        id=model.id,
        title=model.title or "",
        address=model.address or "",
        timezone=model.timezone or "",
    )
