from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ConflictError(AppError):
    pass


class ValidationError(AppError):
    pass


class HostexError(Exception):
    """Any failure talking to the Hostex API."""


class HostexTransportError(HostexError):
    """Network, timeout or undecodable response body."""


class HostexAPIError(HostexError):
    """The envelope carried a non-success error code."""

    def __init__(self, code: object, message: str = "", request_id: str | None = None) -> None:
        self.code = code
        self.message = message
        self.request_id = request_id
        super().__init__(f"API error {code}: {message}")


class MediaUploadError(Exception):
    pass
