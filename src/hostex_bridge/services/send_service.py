from __future__ import annotations

import logging

from hostex_bridge.application.dto.events import MessageSentEvent
from hostex_bridge.application.exceptions import ValidationError
from hostex_bridge.domain.entities.message import SentMessage
from hostex_bridge.domain.value_objects.ids import PortalKey
from hostex_bridge.services.runtime import LoginSession

logger = logging.getLogger(__name__)


async def send_message(
    session: LoginSession,
    conversation_id: str,
    body: str,
    jpeg_base64: str = "",
) -> SentMessage:
    """Post a locally authored message to Hostex.

    The body is recorded in the echo cache before the acknowledgement is
    published, so the copy Hostex reflects back on the next poll is dropped.
    """
    if not conversation_id:
        raise ValidationError("conversation_id is required")
    if not body and not jpeg_base64:
        raise ValidationError("must provide either message content or jpeg image")

    sent = await session.api.send_message(conversation_id, body, jpeg_base64)
    await session.echo.record_sent(body, session.clock.now())

    # Hostex already accepted the message; a retry would post it twice.
    try:
        await session.sink.queue_event(
            session.login_id,
            MessageSentEvent(
                portal_key=PortalKey(id=conversation_id, receiver=session.login_id),
                message_id=sent.id,
                timestamp=sent.created_at,
                body=sent.content,
            ),
        )
    except Exception:
        logger.exception(
            "Failed to publish acknowledgement for sent message %s in %s", sent.id, conversation_id,
        )
    logger.info("Sent message %s to conversation %s", sent.id, conversation_id)
    return sent
