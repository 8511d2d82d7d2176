"""Turn one Hostex message into the content parts delivered to a room."""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from hostex_bridge.application.dto.events import ContentPart
from hostex_bridge.application.ports.media import MediaUploader
from hostex_bridge.domain.entities.message import Message
from hostex_bridge.domain.value_objects.attachment import (
    Attachment,
    RawURLAttachment,
    StructuredAttachment,
)
from hostex_bridge.domain.value_objects.enums import PartType
from hostex_bridge.domain.value_objects.filenames import filename_from_url, generic_filename
from hostex_bridge.domain.value_objects.ids import PortalKey

logger = logging.getLogger(__name__)

EMPTY_MESSAGE_BODY = "(Empty message)"
DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class AttachmentRef:
    url: str
    filename: str | None = None
    mime_type: str | None = None


def resolve_attachment(attachment: Attachment) -> AttachmentRef | None:
    match attachment:
        case StructuredAttachment():
            url = attachment.url
            if url is None:
                logger.debug("Attachment has no URL field: keys=%s", sorted(attachment.fields))
                return None
            return AttachmentRef(
                url=url,
                filename=attachment.filename or filename_from_url(url),
                mime_type=attachment.mime_type,
            )
        case RawURLAttachment(url=url):
            return AttachmentRef(url=url, filename=filename_from_url(url))
        case _:
            return None


def _failure_part(label: str, url: str, reason: str) -> ContentPart:
    return ContentPart(type=PartType.TEXT, body=f"📎 {label}: {url} ({reason})")


def _header_mime(response: httpx.Response) -> str | None:
    raw = response.headers.get("content-type", "")
    mime = raw.split(";", 1)[0].strip().lower()
    return mime or None


class MessageNormalizer:
    """Builds an ordered, never-empty list of parts for a message.

    Attachment problems degrade to a text part carrying the original URL;
    they never drop the message or raise.
    """

    def __init__(self, http: httpx.AsyncClient, uploader: MediaUploader) -> None:
        self._http = http
        self._uploader = uploader

    async def normalize(self, message: Message, portal_key: PortalKey) -> list[ContentPart]:
        parts: list[ContentPart] = []
        if message.content:
            parts.append(ContentPart(type=PartType.TEXT, body=message.content))

        ref = resolve_attachment(message.attachment)
        if ref is not None:
            parts.append(await self._attachment_part(ref, portal_key, message.id))

        if not parts:
            parts.append(ContentPart(type=PartType.TEXT, body=EMPTY_MESSAGE_BODY))
        return parts

    async def _attachment_part(
        self,
        ref: AttachmentRef,
        portal_key: PortalKey,
        message_id: str,
    ) -> ContentPart:
        label = ref.filename or "attachment"
        try:
            async with self._http.stream("GET", ref.url) as response:
                response.raise_for_status()
                try:
                    data = await response.aread()
                except httpx.HTTPError as exc:
                    logger.warning("Reading attachment of %s failed: %r", message_id, exc)
                    return _failure_part(label, ref.url, "read failed")
                downloaded_mime = _header_mime(response)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Downloading attachment of %s failed: %r", message_id, exc)
            return _failure_part(label, ref.url, "download failed")

        mime_type = ref.mime_type or downloaded_mime or DEFAULT_MIME_TYPE
        filename = ref.filename or generic_filename(mime_type)

        try:
            uri = await self._uploader.upload(portal_key, data, filename, mime_type)
        except Exception:  # noqa: BLE001
            logger.exception("Uploading attachment of %s failed", message_id)
            return _failure_part(filename, ref.url, "upload failed")

        part_type = PartType.IMAGE if mime_type.startswith("image/") else PartType.FILE
        return ContentPart(
            type=part_type,
            body=filename,
            uri=uri,
            mime_type=mime_type,
            size=len(data),
        )
