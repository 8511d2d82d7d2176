from __future__ import annotations

import dataclasses
import json
from datetime import datetime
from enum import Enum
from typing import Any

from hostex_bridge.application.dto.events import RemoteEvent


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, Enum):
            return o.value
        if dataclasses.is_dataclass(o) and not isinstance(o, type):
            return {f.name: getattr(o, f.name) for f in dataclasses.fields(o)}
        return super().default(o)


def serialize_event(login_id: str, event: RemoteEvent) -> dict[str, str]:
    """Flatten an event into Redis stream fields."""
    return {
        "event_type": str(event.type),
        "login_id": login_id,
        "portal_id": event.portal_key.id,
        "data": json.dumps(event, cls=_Encoder, ensure_ascii=False),
    }


def deserialize_event(fields: dict[str, str]) -> tuple[str, dict[str, Any]]:
    return fields["event_type"], json.loads(fields["data"])
