from __future__ import annotations

from typing import Protocol

from hostex_bridge.domain.entities.conversation import Conversation, ConversationDetail
from hostex_bridge.domain.entities.message import SentMessage
from hostex_bridge.domain.entities.property import Property


class HostexAPI(Protocol):
    async def list_conversations(self, *, offset: int = 0, limit: int = 50) -> list[Conversation]: ...

    async def get_conversation(self, conversation_id: str) -> ConversationDetail:
        """Full detail; messages are newest first."""
        ...

    async def list_properties(self) -> list[Property]: ...

    async def send_message(
        self,
        conversation_id: str,
        text: str = "",
        jpeg_base64: str = "",
    ) -> SentMessage: ...

    async def aclose(self) -> None: ...
