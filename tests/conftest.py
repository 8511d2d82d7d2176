"""Shared test fixtures."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest

from hostex_bridge.application.dto.events import MessageEvent, RemoteEvent, RoomEvent
from hostex_bridge.application.state import LoginSyncState
from hostex_bridge.domain.entities.conversation import (
    Activity,
    ActivityProperty,
    Conversation,
    ConversationDetail,
    Guest,
)
from hostex_bridge.domain.entities.message import Message, SentMessage
from hostex_bridge.domain.entities.property import Property
from hostex_bridge.domain.value_objects.attachment import Attachment, NoAttachment
from hostex_bridge.domain.value_objects.enums import RemoteEventType, SenderRole
from hostex_bridge.domain.value_objects.ids import PortalKey
from hostex_bridge.services.echo_cache import EchoCache
from hostex_bridge.services.normalizer import MessageNormalizer
from hostex_bridge.services.runtime import BridgeRuntime, RuntimeOptions
from hostex_bridge.services.sync_engine import ConversationSyncEngine, LoginContext
from hostex_bridge.workers.poller import TaskSupervisor

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
LOGIN_ID = "hostex_token123"
TOKEN = "token123-abcdef"


def ts(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def make_message(
    *,
    message_id: str | None = None,
    minutes: int = 0,
    role: SenderRole = SenderRole.GUEST,
    content: str = "hello",
    attachment: Attachment | None = None,
) -> Message:
    return Message(
        id=message_id or f"msg-{minutes}",
        sender_role=role,
        display_type="Text",
        content=content,
        created_at=ts(minutes),
        attachment=attachment or NoAttachment(),
    )


def make_conversation(
    *,
    conversation_id: str = "conv_1",
    guest_name: str = "Alice",
    minutes: int | None = 0,
) -> Conversation:
    return Conversation(
        id=conversation_id,
        channel_type="airbnb",
        last_message_at=ts(minutes) if minutes is not None else None,
        property_title="",
        check_in_date="2024-05-10",
        check_out_date="2024-05-12",
        guest=Guest(name=guest_name),
    )


def make_detail(
    *,
    conversation_id: str = "conv_1",
    messages: list[Message] | None = None,
    property_title: str = "Sea View",
    guest_name: str = "Alice",
) -> ConversationDetail:
    """``messages`` are given oldest first and stored newest first, as Hostex returns them."""
    activities = [
        Activity(
            activity_type="reservation",
            reservation_code="R-1",
            check_in_date="2024-05-10",
            check_out_date="2024-05-12",
            property=ActivityProperty(id=7, title=property_title),
        )
    ]
    return ConversationDetail(
        id=conversation_id,
        channel_type="airbnb",
        guest=Guest(name=guest_name),
        activities=activities,
        messages=list(reversed(messages or [])),
    )


@dataclass
class FakeClock:
    current: datetime = BASE_TIME

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> None:
        self.current += timedelta(**delta)


@dataclass
class FakeHostexAPI:
    conversations: list[Conversation] = field(default_factory=list)
    details: dict[str, ConversationDetail] = field(default_factory=dict)
    properties: list[Property] = field(default_factory=lambda: [Property(id=7, title="Sea View")])
    list_error: Exception | None = None
    properties_error: Exception | None = None
    send_error: Exception | None = None
    detail_errors: dict[str, Exception] = field(default_factory=dict)
    detail_yields: int = 0
    properties_gate: asyncio.Event | None = None
    detail_calls: list[str] = field(default_factory=list)
    list_calls: int = 0
    sent: list[tuple[str, str, str]] = field(default_factory=list)
    closed: bool = False

    def set_conversation(self, conversation: Conversation, detail: ConversationDetail) -> None:
        self.conversations = [c for c in self.conversations if c.id != conversation.id]
        self.conversations.insert(0, conversation)
        self.details[conversation.id] = detail

    async def list_conversations(self, *, offset: int = 0, limit: int = 50) -> list[Conversation]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return self.conversations[offset:offset + limit]

    async def get_conversation(self, conversation_id: str) -> ConversationDetail:
        self.detail_calls.append(conversation_id)
        for _ in range(self.detail_yields):
            await asyncio.sleep(0)
        if conversation_id in self.detail_errors:
            raise self.detail_errors[conversation_id]
        return self.details[conversation_id]

    async def list_properties(self) -> list[Property]:
        if self.properties_gate is not None:
            await self.properties_gate.wait()
        if self.properties_error is not None:
            raise self.properties_error
        return self.properties

    async def send_message(
        self,
        conversation_id: str,
        text: str = "",
        jpeg_base64: str = "",
    ) -> SentMessage:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((conversation_id, text, jpeg_base64))
        return SentMessage(
            id=f"sent-{len(self.sent)}",
            conversation_id=conversation_id,
            sender_role=SenderRole.HOST,
            display_type="Text",
            content=text,
            created_at=BASE_TIME,
        )

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class FakeBridgeSink:
    rooms: set[PortalKey] = field(default_factory=set)
    events: list[tuple[str, RemoteEvent]] = field(default_factory=list)
    queue_error: Exception | None = None

    async def room_exists(self, portal_key: PortalKey) -> bool:
        return portal_key in self.rooms

    async def queue_event(self, login_id: str, event: RemoteEvent) -> None:
        if self.queue_error is not None:
            raise self.queue_error
        self.events.append((login_id, event))
        if event.type == RemoteEventType.ROOM_CREATE:
            self.rooms.add(event.portal_key)

    def message_events(self) -> list[MessageEvent]:
        return [e for _, e in self.events if isinstance(e, MessageEvent)]

    def room_events(self, event_type: RemoteEventType) -> list[RoomEvent]:
        return [e for _, e in self.events if isinstance(e, RoomEvent) and e.type == event_type]

    def clear(self) -> None:
        self.events.clear()


@dataclass
class FakeUploader:
    uploads: list[tuple[PortalKey, bytes, str, str]] = field(default_factory=list)
    error: Exception | None = None

    async def upload(self, portal_key: PortalKey, data: bytes, filename: str, mime_type: str) -> str:
        if self.error is not None:
            raise self.error
        self.uploads.append((portal_key, data, filename, mime_type))
        return f"mxc://bridge.test/media{len(self.uploads)}"


Handler = Callable[[httpx.Request], httpx.Response]


def _not_found(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404)


def make_normalizer(
    handler: Handler | None = None,
    uploader: FakeUploader | None = None,
) -> MessageNormalizer:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler or _not_found))
    return MessageNormalizer(http, uploader or FakeUploader())


@dataclass
class EngineHarness:
    api: FakeHostexAPI
    sink: FakeBridgeSink
    uploader: FakeUploader
    clock: FakeClock
    state: LoginSyncState
    echo: EchoCache
    engine: ConversationSyncEngine

    def portal_key(self, conversation_id: str = "conv_1") -> PortalKey:
        return PortalKey(id=conversation_id, receiver=LOGIN_ID)


def make_engine(
    *,
    api: FakeHostexAPI | None = None,
    sink: FakeBridgeSink | None = None,
    handler: Handler | None = None,
    conversation_limit: int = 10,
    **state_kwargs: Any,
) -> EngineHarness:
    api = api or FakeHostexAPI()
    sink = sink or FakeBridgeSink()
    uploader = FakeUploader()
    clock = FakeClock()
    state = LoginSyncState(**state_kwargs)
    echo = EchoCache()
    engine = ConversationSyncEngine(
        LoginContext(login_id=LOGIN_ID),
        api,
        sink,
        make_normalizer(handler, uploader),
        state,
        echo,
        clock=clock,
        conversation_limit=conversation_limit,
    )
    return EngineHarness(api, sink, uploader, clock, state, echo, engine)


@pytest.fixture
def harness() -> EngineHarness:
    return make_engine()


@dataclass
class RuntimeHarness:
    runtime: BridgeRuntime
    apis: dict[str, FakeHostexAPI]
    sink: FakeBridgeSink
    clock: FakeClock


def make_runtime(
    api: FakeHostexAPI | None = None,
    *,
    apis: dict[str, FakeHostexAPI] | None = None,
) -> RuntimeHarness:
    """Runtime whose every login shares ``api`` (or a fresh fake per token).

    ``apis`` pre-assigns fakes to specific tokens.
    """
    apis = apis if apis is not None else {}
    sink = FakeBridgeSink()
    clock = FakeClock()

    def factory(token: str) -> FakeHostexAPI:
        if token not in apis:
            apis[token] = api if api is not None else FakeHostexAPI()
        return apis[token]

    runtime = BridgeRuntime(
        sink=sink,
        normalizer=make_normalizer(),
        supervisor=TaskSupervisor(clock=clock),
        api_factory=factory,
        options=RuntimeOptions(poll_interval=3600),
        clock=clock,
    )
    return RuntimeHarness(runtime, apis, sink, clock)
