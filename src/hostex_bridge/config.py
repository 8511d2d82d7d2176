from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

VERSION = "0.1.0"


class Settings(BaseSettings):
    HOSTEX_API_URL: str = "https://api.hostex.io/v3"
    HOSTEX_ACCESS_TOKENS: list[str] = []
    HOSTEX_TIMEOUT_SECONDS: float = 10.0
    HOSTEX_USER_AGENT: str = f"hostex-bridge/{VERSION}"

    SYNC_POLL_INTERVAL: float = 30.0
    SYNC_CONVERSATION_LIMIT: int = 10
    SYNC_LIST_PAGE_SIZE: int = 50

    ECHO_WINDOW_SECONDS: float = 120.0
    ACTIVITY_CACHE_MAX_ENTRIES: int = 1000

    ATTACHMENT_TIMEOUT_SECONDS: float = 10.0
    MEDIA_UPLOAD_URL: str | None = None
    MEDIA_UPLOAD_TOKEN: str = ""

    REDIS_URL: str = "redis://localhost:6379/0"
    BRIDGE_EVENTS_STREAM: str = "bridge.remote_events"
    BRIDGE_ROOMS_KEY: str = "bridge.rooms"
    BRIDGE_OUTBOUND_STREAM: str = "bridge.outbound"
    BRIDGE_OUTBOUND_GROUP: str = "hostex-bridge"
    BRIDGE_OUTBOUND_RETRY_IDLE_MS: int = 30000

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: list[str] = ["*"]

    FAILURE_HISTORY_SIZE: int = 100

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
