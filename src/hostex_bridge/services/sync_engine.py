"""Incremental conversation sync for one login.

Each poll lists the most recently active conversations, skips the ones
whose activity timestamp has not moved, and for the rest fetches the full
history and emits whatever lies above the conversation's low-water mark.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from hostex_bridge.application.dto.events import (
    EventSender,
    MessageEvent,
    RoomEvent,
    RoomInfo,
)
from hostex_bridge.application.dto.reports import SyncReport
from hostex_bridge.application.exceptions import HostexError
from hostex_bridge.application.ports.bridge import BridgeSink
from hostex_bridge.application.ports.clock import Clock, SystemClock
from hostex_bridge.application.ports.hostex import HostexAPI
from hostex_bridge.application.state import LoginSyncState
from hostex_bridge.domain.entities.conversation import Activity, Conversation
from hostex_bridge.domain.entities.message import Message
from hostex_bridge.domain.value_objects.enums import RemoteEventType, SenderRole
from hostex_bridge.domain.value_objects.ids import PortalKey, guest_user_id
from hostex_bridge.services.echo_cache import EchoCache
from hostex_bridge.services.normalizer import MessageNormalizer

logger = logging.getLogger(__name__)

UNKNOWN_PROPERTY = "Unknown Property"

# Mark for a conversation that has no history yet: every later message is above it.
EMPTY_MARK = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True, slots=True)
class LoginContext:
    login_id: str


def property_name(activities: list[Activity]) -> str:
    for activity in activities:
        if activity.property.title:
            return activity.property.title
    return UNKNOWN_PROPERTY


def room_name(property_title: str, guest_name: str) -> str:
    return f"({property_title}) - {guest_name}"


def oldest_first(messages: list[Message]) -> list[Message]:
    """Hostex lists newest first; reverse, then stable-sort by timestamp."""
    return sorted(reversed(messages), key=lambda m: m.created_at)


class ConversationSyncEngine:
    def __init__(
        self,
        login: LoginContext,
        api: HostexAPI,
        bridge: BridgeSink,
        normalizer: MessageNormalizer,
        state: LoginSyncState,
        echo: EchoCache,
        *,
        clock: Clock | None = None,
        conversation_limit: int = 10,
        page_size: int = 50,
    ) -> None:
        self._login = login
        self._api = api
        self._bridge = bridge
        self._normalizer = normalizer
        self._state = state
        self._echo = echo
        self._clock = clock or SystemClock()
        self._conversation_limit = conversation_limit
        self._page_size = page_size

    @property
    def login_id(self) -> str:
        return self._login.login_id

    @property
    def state(self) -> LoginSyncState:
        return self._state

    async def poll_once(self) -> SyncReport:
        report = SyncReport(login_id=self.login_id, started_at=self._clock.now())
        try:
            conversations = await self._api.list_conversations(limit=self._page_size)
        except HostexError:
            logger.exception("Failed to fetch conversations for %s", self.login_id)
            report.list_failed = True
            return report

        conversations = conversations[: self._conversation_limit]
        report.listed = len(conversations)
        logger.info(
            "Checking %d conversations for new messages (login=%s)",
            len(conversations), self.login_id,
        )

        for conv in conversations:
            if await self._state.is_unchanged(conv.id, conv.last_message_at):
                logger.debug("Skipping conversation %s - no new messages", conv.id)
                report.skipped += 1
                continue
            try:
                await self._sync_conversation(conv, report)
            except HostexError:
                logger.exception("Failed to sync conversation %s", conv.id)
                report.failed.append(conv.id)
                continue
            report.synced += 1

        logger.info(
            "Poll finished for %s: synced=%d skipped=%d failed=%d emitted=%d",
            self.login_id, report.synced, report.skipped, len(report.failed), report.emitted,
        )
        return report

    async def _sync_conversation(self, conv: Conversation, report: SyncReport) -> None:
        detail = await self._api.get_conversation(conv.id)
        # Advanced only after a successful fetch so failures are retried next tick.
        await self._state.mark_activity(conv.id, conv.last_message_at)

        title = property_name(detail.activities)
        guest_name = conv.guest.name or detail.guest.name
        await self._state.remember_guest(conv.id, guest_name)

        portal_key = PortalKey(id=conv.id, receiver=self.login_id)
        info = RoomInfo(name=room_name(title, guest_name), topic=title)
        messages = oldest_first(detail.messages)

        if not await self._bridge.room_exists(portal_key):
            logger.info("Creating room for conversation %s (%s) with backfill", conv.id, info.name)
            await self._bridge.queue_event(
                self.login_id,
                self._room_event(RemoteEventType.ROOM_CREATE, portal_key, conv, info),
            )
            for msg in messages:
                await self._emit(portal_key, conv.id, msg, report)
            last = messages[-1].created_at if messages else EMPTY_MARK
            await self._state.advance_mark(conv.id, last)
            return

        await self._bridge.queue_event(
            self.login_id,
            self._room_event(RemoteEventType.ROOM_UPDATE, portal_key, conv, info),
        )

        mark = await self._state.get_mark(conv.id)
        if mark is None:
            # First contact with a room that already exists: baseline on the
            # oldest message instead of replaying the whole history into it.
            first = messages[0].created_at if messages else EMPTY_MARK
            baseline = await self._state.advance_mark(conv.id, first)
            logger.info("Baselined conversation %s at %s", conv.id, baseline.isoformat())
            return

        fresh = [m for m in messages if m.created_at > mark]
        for msg in fresh:
            await self._emit(portal_key, conv.id, msg, report)
        if fresh:
            await self._state.advance_mark(conv.id, fresh[-1].created_at)
        logger.info(
            "Conversation %s: %d new messages above %s", conv.id, len(fresh), mark.isoformat(),
        )

    def _room_event(
        self,
        event_type: RemoteEventType,
        portal_key: PortalKey,
        conv: Conversation,
        info: RoomInfo,
    ) -> RoomEvent:
        create = event_type == RemoteEventType.ROOM_CREATE
        return RoomEvent(
            type=event_type,
            portal_key=portal_key,
            timestamp=conv.last_message_at,
            info=info,
            sender=EventSender(is_from_me=False, sender=guest_user_id(conv.id)),
            create_portal=create,
            backfill=create,
        )

    async def _emit(
        self,
        portal_key: PortalKey,
        conversation_id: str,
        msg: Message,
        report: SyncReport,
    ) -> None:
        if await self._echo.should_suppress(msg.content, msg.sender_role, self._clock.now()):
            logger.debug("Skipping echo of recently sent message %s", msg.id)
            report.suppressed += 1
            return

        if msg.sender_role == SenderRole.HOST:
            sender = EventSender(is_from_me=True, sender="", sender_login=self.login_id)
        else:
            sender = EventSender(
                is_from_me=False,
                sender=guest_user_id(conversation_id),
                sender_login=self.login_id,
            )

        parts = await self._normalizer.normalize(msg, portal_key)
        await self._bridge.queue_event(
            self.login_id,
            MessageEvent(
                portal_key=portal_key,
                message_id=msg.id,
                timestamp=msg.created_at,
                sender=sender,
                parts=parts,
            ),
        )
        report.emitted += 1
