"""Async client for the Hostex v3 REST API."""
from __future__ import annotations

import logging
import time
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from hostex_bridge.application.exceptions import HostexAPIError, HostexTransportError
from hostex_bridge.application.ports.clock import Clock, SystemClock
from hostex_bridge.config import settings
from hostex_bridge.domain.entities.conversation import Conversation, ConversationDetail
from hostex_bridge.domain.entities.message import SentMessage
from hostex_bridge.domain.entities.property import Property
from hostex_bridge.domain.value_objects.enums import SenderRole
from hostex_bridge.infrastructure.hostex.mappers import (
    conversation_to_entity,
    detail_to_entity,
    property_to_entity,
)
from hostex_bridge.infrastructure.hostex.schemas import (
    ConversationDetailModel,
    ConversationsData,
    Envelope,
    PropertiesData,
)

logger = logging.getLogger(__name__)

SUCCESS_CODE = "200"
TOKEN_HEADER = "Hostex-Access-Token"

M = TypeVar("M", bound=BaseModel)


def is_success_code(code: int | str | None) -> bool:
    """The field arrives as a number or a string; absent means success."""
    if code is None:
        return True
    text = str(code).strip()
    return text in ("", SUCCESS_CODE)


class HostexClient:
    """Implements application.ports.hostex.HostexAPI.

    Every call is one HTTP round trip bounded by the client timeout.
    """

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._http = httpx.AsyncClient(
            base_url=(base_url or settings.HOSTEX_API_URL).rstrip("/"),
            timeout=timeout if timeout is not None else settings.HOSTEX_TIMEOUT_SECONDS,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "User-Agent": settings.HOSTEX_USER_AGENT,
                TOKEN_HEADER: access_token,
            },
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Envelope:
        try:
            response = await self._http.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            raise HostexTransportError(f"{method} {path} failed: {exc!r}") from exc

        try:
            envelope = Envelope.model_validate_json(response.content)
        except PydanticValidationError as exc:
            raise HostexTransportError(
                f"failed to decode {method} {path} response (HTTP {response.status_code})"
            ) from exc

        if not is_success_code(envelope.error_code):
            raise HostexAPIError(envelope.error_code, envelope.error_msg or "", envelope.request_id)
        if response.is_error:
            raise HostexAPIError(
                response.status_code,
                envelope.error_msg or response.reason_phrase,
                envelope.request_id,
            )
        return envelope

    @staticmethod
    def _data(envelope: Envelope, model: type[M], path: str) -> M:
        try:
            return model.model_validate(envelope.data or {})
        except PydanticValidationError as exc:
            raise HostexTransportError(f"unexpected response shape from {path}") from exc

    async def list_conversations(self, *, offset: int = 0, limit: int = 50) -> list[Conversation]:
        envelope = await self._request(
            "GET", "/conversations", params={"offset": offset, "limit": limit},
        )
        data = self._data(envelope, ConversationsData, "/conversations")
        return [conversation_to_entity(c) for c in data.conversations]

    async def get_conversation(self, conversation_id: str) -> ConversationDetail:
        path = f"/conversations/{conversation_id}"
        envelope = await self._request("GET", path)
        detail = detail_to_entity(self._data(envelope, ConversationDetailModel, path))
        logger.debug(
            "Fetched conversation %s with %d messages", conversation_id, len(detail.messages),
        )
        return detail

    async def list_properties(self) -> list[Property]:
        envelope = await self._request("GET", "/properties")
        data = self._data(envelope, PropertiesData, "/properties")
        return [property_to_entity(p) for p in data.properties]

    async def send_message(
        self,
        conversation_id: str,
        text: str = "",
        jpeg_base64: str = "",
    ) -> SentMessage:
        if not text and not jpeg_base64:
            raise ValueError("must provide either message content or jpeg image")

        payload: dict[str, Any] = {}
        if text:
            payload["message"] = text
        if jpeg_base64:
            payload["jpeg"] = jpeg_base64

        await self._request("POST", f"/conversations/{conversation_id}", json=payload)

        # The endpoint returns no message object; fabricate a local record.
        if jpeg_base64:
            display_type = "TextWithImage" if text else "Image"
        else:
            display_type = "Text"
        return SentMessage(
            id=f"sent-{time.time_ns()}",
            conversation_id=conversation_id,
            sender_role=SenderRole.HOST,
            display_type=display_type,
            content=text,
            created_at=self._clock.now(),
        )
