from __future__ import annotations

from hostex_bridge.application.exceptions import NotFoundError, ValidationError
from hostex_bridge.domain.value_objects.ids import GUEST_PREFIX, HOST_PREFIX, PortalKey
from hostex_bridge.services.runtime import LoginSession

CONVERSATION_PREFIX = "conv_"


def is_this_user(user_id: str) -> bool:
    """On Hostex we are always the host."""
    return user_id.startswith(HOST_PREFIX)


async def resolve_identifier(session: LoginSession, identifier: str) -> PortalKey:
    if not identifier.startswith(CONVERSATION_PREFIX):
        raise ValidationError(f"unknown identifier format: {identifier}")
    conversations = await session.api.list_conversations()
    for conv in conversations:
        if conv.id == identifier:
            return PortalKey(id=conv.id, receiver=session.login_id)
    raise NotFoundError(f"conversation not found: {identifier}")


async def user_info(session: LoginSession, user_id: str) -> str:
    """Display name for a ghost user id."""
    if user_id.startswith(HOST_PREFIX):
        return "Host"
    if user_id.startswith(GUEST_PREFIX):
        conversation_id = user_id.removeprefix(GUEST_PREFIX)
        name = await session.state.guest_name(conversation_id)
        return name or f"Guest {conversation_id}"
    return "Unknown User"
