from __future__ import annotations

from dataclasses import dataclass

HOST_PREFIX = "host_"
GUEST_PREFIX = "guest_"


@dataclass(frozen=True, slots=True)
class PortalKey:
    """Identifies the room for one conversation as seen by one login."""

    id: str
    receiver: str

    def __str__(self) -> str:
        return f"{self.id}/{self.receiver}"


def guest_user_id(conversation_id: str) -> str:
    return GUEST_PREFIX + conversation_id


def login_id_for_token(access_token: str) -> str:
    """Stable login id built from the token's first 8 characters.

    Two tokens sharing that prefix map to the same id; the runtime rejects
    the second one instead of handing it the first one's session.
    """
    return f"hostex_{access_token[:8]}"
