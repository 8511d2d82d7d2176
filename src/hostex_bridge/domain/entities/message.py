from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from hostex_bridge.domain.value_objects.attachment import Attachment, NoAttachment
from hostex_bridge.domain.value_objects.enums import SenderRole


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    sender_role: SenderRole
    display_type: str
    content: str
    created_at: datetime
    attachment: Attachment = field(default_factory=NoAttachment)


@dataclass(frozen=True, slots=True)
class SentMessage:
    """Bookkeeping record for a message we posted.

    ``id`` is fabricated locally and never matches a remote message id.
    """

    id: str
    conversation_id: str
    sender_role: SenderRole
    display_type: str
    content: str
    created_at: datetime
