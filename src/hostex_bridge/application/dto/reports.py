from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class SyncReport:
    login_id: str
    started_at: datetime
    listed: int = 0
    skipped: int = 0
    synced: int = 0
    emitted: int = 0
    suppressed: int = 0
    list_failed: bool = False
    failed: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TaskFailure:
    task_name: str
    error: str
    failed_at: datetime
