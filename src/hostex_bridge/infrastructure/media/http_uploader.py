"""Uploads attachment bytes to the bridge's content repository."""
from __future__ import annotations

import logging

import httpx

from hostex_bridge.application.exceptions import MediaUploadError
from hostex_bridge.domain.value_objects.ids import PortalKey

logger = logging.getLogger(__name__)


class HttpMediaUploader:
    """Implements application.ports.media.MediaUploader.

    POSTs the raw bytes and expects ``{"content_uri": ...}`` back.
    """

    def __init__(self, http: httpx.AsyncClient, upload_url: str | None, token: str = "") -> None:
        self._http = http
        self._upload_url = upload_url
        self._token = token

    async def upload(
        self,
        portal_key: PortalKey,
        data: bytes,
        filename: str,
        mime_type: str,
    ) -> str:
        if not self._upload_url:
            raise MediaUploadError("media upload URL is not configured")

        headers = {"Content-Type": mime_type}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            response = await self._http.post(
                self._upload_url,
                params={"filename": filename, "room": portal_key.id},
                content=data,
                headers=headers,
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise MediaUploadError(f"upload of {filename} failed: {exc!r}") from exc

        uri = body.get("content_uri") if isinstance(body, dict) else None
        if not isinstance(uri, str) or not uri:
            raise MediaUploadError(f"upload of {filename} returned no content_uri")
        logger.debug("Uploaded %s (%d bytes) as %s", filename, len(data), uri)
        return uri
