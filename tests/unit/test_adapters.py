from __future__ import annotations

import json
import logging

import httpx
import jwt
import pytest

from hostex_bridge.api.middleware.request_id import RequestIdFilter, request_id_ctx
from hostex_bridge.application.dto.events import ContentPart, EventSender, MessageEvent
from hostex_bridge.application.exceptions import MediaUploadError
from hostex_bridge.domain.value_objects.enums import PartType
from hostex_bridge.domain.value_objects.ids import PortalKey
from hostex_bridge.infrastructure.auth.hs256_verifier import HS256Verifier
from hostex_bridge.infrastructure.bridge.redis_sink import RedisBridgeSink
from hostex_bridge.infrastructure.bus.serializer import deserialize_event, serialize_event
from hostex_bridge.infrastructure.media.http_uploader import HttpMediaUploader
from tests.conftest import BASE_TIME, LOGIN_ID

PORTAL = PortalKey(id="conv_1", receiver=LOGIN_ID)
UPLOAD_URL = "https://bridge.test/_media/upload"


def _uploader(handler, url: str | None = UPLOAD_URL) -> HttpMediaUploader:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpMediaUploader(http, url, token="media-token")


@pytest.mark.asyncio
async def test_upload_returns_content_uri():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"content_uri": "mxc://bridge.test/abc"})

    uri = await _uploader(handler).upload(PORTAL, b"data", "photo.jpg", "image/jpeg")

    assert uri == "mxc://bridge.test/abc"
    request = seen[0]
    assert request.headers["Authorization"] == "Bearer media-token"
    assert request.headers["Content-Type"] == "image/jpeg"
    assert request.url.params["filename"] == "photo.jpg"
    assert request.url.params["room"] == "conv_1"
    assert request.content == b"data"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500),
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json={"uri": "missing"}),
    ],
)
async def test_upload_failures_raise(response):
    uploader = _uploader(lambda request: response)

    with pytest.raises(MediaUploadError):
        await uploader.upload(PORTAL, b"data", "photo.jpg", "image/jpeg")


@pytest.mark.asyncio
async def test_upload_requires_configuration():
    uploader = _uploader(lambda request: httpx.Response(200), url=None)

    with pytest.raises(MediaUploadError):
        await uploader.upload(PORTAL, b"data", "photo.jpg", "image/jpeg")


def _message_event() -> MessageEvent:
    return MessageEvent(
        portal_key=PORTAL,
        message_id="msg-1",
        timestamp=BASE_TIME,
        sender=EventSender(is_from_me=False, sender="guest_conv_1", sender_login=LOGIN_ID),
        parts=[ContentPart(type=PartType.TEXT, body="héllo")],
    )


def test_serialize_event_fields():
    fields = serialize_event(LOGIN_ID, _message_event())

    assert fields["event_type"] == "message"
    assert fields["login_id"] == LOGIN_ID
    assert fields["portal_id"] == "conv_1"
    event_type, data = deserialize_event(fields)
    assert event_type == "message"
    assert data["portal_key"] == {"id": "conv_1", "receiver": LOGIN_ID}
    assert data["timestamp"] == BASE_TIME.isoformat()
    assert data["parts"][0] == {
        "type": "text", "body": "héllo", "uri": None, "mime_type": None, "size": None,
    }


class FakeRedis:
    def __init__(self):
        self.hashes: dict[str, dict[str, str]] = {}
        self.streams: dict[str, list[dict[str, str]]] = {}

    async def hexists(self, key, field):
        return field in self.hashes.get(key, {})

    async def xadd(self, stream, fields):
        self.streams.setdefault(stream, []).append(fields)
        return f"{len(self.streams[stream])}-0"


@pytest.mark.asyncio
async def test_redis_sink_room_lookup_and_queue():
    redis = FakeRedis()
    redis.hashes["bridge.rooms"] = {"conv_1/" + LOGIN_ID: "!room:bridge.test"}
    sink = RedisBridgeSink(redis, "bridge.remote_events", "bridge.rooms")

    assert await sink.room_exists(PORTAL) is True
    assert await sink.room_exists(PortalKey(id="conv_2", receiver=LOGIN_ID)) is False

    await sink.queue_event(LOGIN_ID, _message_event())

    (entry,) = redis.streams["bridge.remote_events"]
    assert entry["event_type"] == "message"
    assert json.loads(entry["data"])["message_id"] == "msg-1"


@pytest.mark.asyncio
async def test_verifier_reads_operator_claims():
    verifier = HS256Verifier("a-test-secret-that-is-long-enough-for-hs256")
    token = jwt.encode(
        {"sub": "7", "kind": "admin"},
        "a-test-secret-that-is-long-enough-for-hs256",
        algorithm="HS256",
    )

    operator = await verifier.verify(token)

    assert operator.subject == "7"
    assert operator.is_admin is True


@pytest.mark.asyncio
async def test_verifier_without_secret_rejects():
    with pytest.raises(jwt.InvalidTokenError):
        await HS256Verifier("").verify("anything")


def test_request_id_filter_tags_records():
    record = logging.LogRecord("hostex_bridge", logging.INFO, __file__, 1, "poll", None, None)
    token = request_id_ctx.set("op-7")
    try:
        assert RequestIdFilter().filter(record) is True
    finally:
        request_id_ctx.reset(token)
    assert record.request_id == "op-7"
