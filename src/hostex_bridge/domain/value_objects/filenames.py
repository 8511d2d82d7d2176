from __future__ import annotations

import mimetypes
from urllib.parse import unquote, urlsplit

# Trailing path segments some CDNs use to pick a rendition.
SIZE_TOKENS = frozenset({
    "xxlarge", "xlarge", "x_large", "xx_large", "large", "medium", "small",
    "xsmall", "thumb", "thumbnail", "original", "full", "fullsize", "preview",
})

_PREFERRED_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "application/pdf": ".pdf",
}


def _has_extension(segment: str) -> bool:
    stem, dot, ext = segment.rpartition(".")
    return bool(dot and stem and ext)


def filename_from_url(url: str) -> str | None:
    """Derive a filename from the URL path, skipping trailing size tokens."""
    segments = [unquote(s) for s in urlsplit(url).path.split("/") if s]
    if not segments:
        return None
    last = segments[-1]
    if last.lower() not in SIZE_TOKENS or _has_extension(last):
        return last
    for segment in reversed(segments[:-1]):
        if _has_extension(segment):
            return segment
    return None


def extension_for_mime(mime_type: str) -> str:
    if mime_type in _PREFERRED_EXTENSIONS:
        return _PREFERRED_EXTENSIONS[mime_type]
    return mimetypes.guess_extension(mime_type) or ""


def generic_filename(mime_type: str) -> str:
    base = "image" if mime_type.startswith("image/") else "attachment"
    return base + extension_for_mime(mime_type)
