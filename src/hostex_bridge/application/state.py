"""Per-login synchronization state.

One ``LoginSyncState`` is owned by each login session and passed to the
sync engine explicitly. Every map has its own lock and no lock is held
across I/O; there is no transaction spanning two maps.
"""
from __future__ import annotations

import asyncio
from collections import OrderedDict
from datetime import datetime


class LoginSyncState:
    def __init__(self, *, activity_max_entries: int = 1000) -> None:
        self._marks: dict[str, datetime] = {}
        self._marks_lock = asyncio.Lock()

        self._activity: OrderedDict[str, datetime] = OrderedDict()
        self._activity_lock = asyncio.Lock()
        self._activity_max_entries = activity_max_entries

        self._guest_names: dict[str, str] = {}
        self._guest_names_lock = asyncio.Lock()

    # -- low-water marks ----------------------------------------------------

    async def get_mark(self, conversation_id: str) -> datetime | None:
        async with self._marks_lock:
            return self._marks.get(conversation_id)

    async def advance_mark(self, conversation_id: str, ts: datetime) -> datetime:
        """Move the mark forward to ``ts``; never moves it back."""
        async with self._marks_lock:
            current = self._marks.get(conversation_id)
            if current is None or ts > current:
                self._marks[conversation_id] = ts
                return ts
            return current

    # -- conversation activity markers --------------------------------------

    async def is_unchanged(self, conversation_id: str, last_message_at: datetime | None) -> bool:
        if last_message_at is None:
            return False
        async with self._activity_lock:
            cached = self._activity.get(conversation_id)
            if cached is None:
                return False
            self._activity.move_to_end(conversation_id)
            return last_message_at <= cached

    async def mark_activity(self, conversation_id: str, last_message_at: datetime | None) -> None:
        if last_message_at is None:
            return
        async with self._activity_lock:
            cached = self._activity.get(conversation_id)
            if cached is None or last_message_at > cached:
                self._activity[conversation_id] = last_message_at
            self._activity.move_to_end(conversation_id)
            while len(self._activity) > self._activity_max_entries:
                self._activity.popitem(last=False)

    async def activity_for(self, conversation_id: str) -> datetime | None:
        async with self._activity_lock:
            return self._activity.get(conversation_id)

    async def clear_activity(self) -> int:
        async with self._activity_lock:
            count = len(self._activity)
            self._activity.clear()
            return count

    # -- guest names --------------------------------------------------------

    async def remember_guest(self, conversation_id: str, name: str) -> None:
        if not name:
            return
        async with self._guest_names_lock:
            self._guest_names[conversation_id] = name

    async def guest_name(self, conversation_id: str) -> str | None:
        async with self._guest_names_lock:
            return self._guest_names.get(conversation_id)
