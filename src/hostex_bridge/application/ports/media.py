from __future__ import annotations

from typing import Protocol

from hostex_bridge.domain.value_objects.ids import PortalKey


class MediaUploader(Protocol):
    async def upload(
        self,
        portal_key: PortalKey,
        data: bytes,
        filename: str,
        mime_type: str,
    ) -> str:
        """Store ``data`` and return its content URI. Raises MediaUploadError."""
        ...
