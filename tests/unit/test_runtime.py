from __future__ import annotations

import asyncio

import pytest

from hostex_bridge.application.exceptions import (
    ConflictError,
    HostexAPIError,
    NotFoundError,
    ValidationError,
)
from hostex_bridge.services import login_service
from tests.conftest import LOGIN_ID, TOKEN, FakeHostexAPI, make_conversation, make_detail, make_runtime


def test_normalize_token_rejects_blank():
    with pytest.raises(ValidationError):
        login_service.normalize_token("   ")
    with pytest.raises(ValidationError):
        login_service.normalize_token(None)
    assert login_service.normalize_token(" abc ") == "abc"


@pytest.mark.asyncio
async def test_validate_token_wraps_api_errors():
    api = FakeHostexAPI(properties_error=HostexAPIError(401, "bad token"))

    with pytest.raises(ValidationError) as exc_info:
        await login_service.validate_token(api)

    assert "failed to authenticate with Hostex API" in exc_info.value.detail


@pytest.mark.asyncio
async def test_login_registers_session_with_derived_id():
    h = make_runtime()

    session = await h.runtime.login(TOKEN, start=False)

    assert session.login_id == LOGIN_ID
    assert h.runtime.get(LOGIN_ID) is session
    assert [s.login_id for s in h.runtime.sessions()] == [LOGIN_ID]


@pytest.mark.asyncio
async def test_login_is_idempotent_per_token():
    h = make_runtime()

    first = await h.runtime.login(TOKEN, start=False)
    second = await h.runtime.login(TOKEN, start=False)

    assert first is second
    assert len(h.apis) == 1


@pytest.mark.asyncio
async def test_failed_validation_closes_client():
    api = FakeHostexAPI(properties_error=HostexAPIError(401, "bad token"))
    h = make_runtime(api)

    with pytest.raises(ValidationError):
        await h.runtime.login(TOKEN)

    assert api.closed is True
    assert h.runtime.sessions() == []


@pytest.mark.asyncio
async def test_login_all_skips_invalid_tokens():
    h = make_runtime()

    sessions = await h.runtime.login_all(["", TOKEN])

    assert [s.login_id for s in sessions] == [LOGIN_ID]
    await h.runtime.shutdown()


@pytest.mark.asyncio
async def test_started_poller_runs_first_poll_immediately():
    api = FakeHostexAPI()
    api.set_conversation(make_conversation(), make_detail())
    h = make_runtime(api)

    session = await h.runtime.login(TOKEN)
    assert h.runtime.supervisor.running == [f"poller:{LOGIN_ID}"]
    for _ in range(50):
        if session.last_report is not None:
            break
        await asyncio.sleep(0)

    await h.runtime.logout(LOGIN_ID)

    assert api.list_calls == 1
    assert session.last_report is not None
    assert session.last_report.synced == 1
    assert api.closed is True
    assert h.runtime.supervisor.running == []


@pytest.mark.asyncio
async def test_logout_unknown_login():
    h = make_runtime()

    with pytest.raises(NotFoundError):
        await h.runtime.logout("hostex_missing")
    with pytest.raises(NotFoundError):
        h.runtime.get("hostex_missing")


@pytest.mark.asyncio
async def test_slow_validation_does_not_block_other_logins():
    gate = asyncio.Event()
    h = make_runtime(apis={TOKEN: FakeHostexAPI(properties_gate=gate)})

    pending = asyncio.create_task(h.runtime.login(TOKEN, start=False))
    await asyncio.sleep(0)

    other = await asyncio.wait_for(h.runtime.login("other-token", start=False), timeout=1)

    assert other.login_id == "hostex_other-to"
    assert not pending.done()
    gate.set()
    session = await pending
    assert session.login_id == LOGIN_ID
    assert {s.login_id for s in h.runtime.sessions()} == {LOGIN_ID, "hostex_other-to"}


@pytest.mark.asyncio
async def test_token_sharing_login_id_prefix_is_rejected():
    h = make_runtime()
    session = await h.runtime.login(TOKEN, start=False)

    with pytest.raises(ConflictError):
        await h.runtime.login("token123-different", start=False)

    assert h.runtime.get(LOGIN_ID) is session
    assert h.runtime.get(LOGIN_ID).token == TOKEN


@pytest.mark.asyncio
async def test_login_all_skips_colliding_tokens():
    h = make_runtime()

    sessions = await h.runtime.login_all([TOKEN, "token123-different"])

    assert [s.login_id for s in sessions] == [LOGIN_ID]
    await h.runtime.shutdown()
