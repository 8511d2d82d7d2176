from __future__ import annotations

import logging

from hostex_bridge.application.exceptions import HostexError, ValidationError
from hostex_bridge.application.ports.hostex import HostexAPI

logger = logging.getLogger(__name__)


def normalize_token(access_token: str | None) -> str:
    token = (access_token or "").strip()
    if not token:
        raise ValidationError("access token is required")
    return token


async def validate_token(api: HostexAPI) -> int:
    """Prove the token works by listing properties. Returns the property count."""
    try:
        properties = await api.list_properties()
    except HostexError as exc:
        logger.error("Failed to authenticate with Hostex API: %s", exc)
        raise ValidationError(f"failed to authenticate with Hostex API: {exc}") from exc
    logger.info("Authenticated with Hostex API (%d properties)", len(properties))
    return len(properties)
