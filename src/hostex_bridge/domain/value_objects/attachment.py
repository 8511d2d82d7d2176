"""Attachment payloads, parsed once at the API boundary.

Hostex returns ``attachment`` as ``null``, a JSON object, or a bare URL
string depending on the channel. Everything downstream dispatches on the
tagged union below instead of probing the raw value again.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

URL_FIELDS = ("fullsize_url", "url", "file_url", "image_url", "src", "link")
FILENAME_FIELDS = ("filename", "name", "title")
TYPE_FIELDS = ("type", "mime_type", "content_type")

_TYPE_TAGS = {
    "image": "image/jpeg",
    "photo": "image/jpeg",
}


@dataclass(frozen=True, slots=True)
class NoAttachment:
    pass


@dataclass(frozen=True, slots=True)
class StructuredAttachment:
    fields: dict[str, Any] = field(default_factory=dict)

    def _first_str(self, names: tuple[str, ...]) -> str | None:
        for name in names:
            value = self.fields.get(name)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    @property
    def url(self) -> str | None:
        return self._first_str(URL_FIELDS)

    @property
    def filename(self) -> str | None:
        return self._first_str(FILENAME_FIELDS)

    @property
    def mime_type(self) -> str | None:
        raw = self._first_str(TYPE_FIELDS)
        if raw is None:
            return None
        raw = raw.lower()
        if "/" in raw:
            return raw
        return _TYPE_TAGS.get(raw)


@dataclass(frozen=True, slots=True)
class RawURLAttachment:
    url: str


Attachment = NoAttachment | StructuredAttachment | RawURLAttachment


def parse_attachment(raw: Any) -> Attachment:
    if isinstance(raw, dict):
        return StructuredAttachment(fields=dict(raw))
    if isinstance(raw, str) and raw.strip():
        return RawURLAttachment(url=raw.strip())
    return NoAttachment()
