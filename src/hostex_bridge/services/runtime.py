"""Registry of logged-in Hostex accounts and their sync machinery."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable

from hostex_bridge.application.dto.reports import SyncReport
from hostex_bridge.application.exceptions import AppError, ConflictError, NotFoundError, ValidationError
from hostex_bridge.application.ports.bridge import BridgeSink
from hostex_bridge.application.ports.clock import Clock, SystemClock
from hostex_bridge.application.ports.hostex import HostexAPI
from hostex_bridge.application.state import LoginSyncState
from hostex_bridge.domain.value_objects.ids import login_id_for_token
from hostex_bridge.services import login_service
from hostex_bridge.services.echo_cache import EchoCache
from hostex_bridge.services.normalizer import MessageNormalizer
from hostex_bridge.services.sync_engine import ConversationSyncEngine, LoginContext
from hostex_bridge.workers.poller import LoginPoller, TaskSupervisor

logger = logging.getLogger(__name__)

ApiFactory = Callable[[str], HostexAPI]


@dataclass(frozen=True, slots=True)
class RuntimeOptions:
    poll_interval: float = 30.0
    conversation_limit: int = 10
    page_size: int = 50
    echo_window: timedelta = timedelta(minutes=2)
    activity_max_entries: int = 1000


@dataclass(slots=True)
class LoginSession:
    login: LoginContext
    api: HostexAPI
    state: LoginSyncState
    echo: EchoCache
    engine: ConversationSyncEngine
    poller: LoginPoller
    sink: BridgeSink
    clock: Clock
    token: str = field(default="", repr=False)

    @property
    def login_id(self) -> str:
        return self.login.login_id

    @property
    def last_report(self) -> SyncReport | None:
        return self.poller.last_report

    async def sync_now(self) -> SyncReport:
        report = await self.engine.poll_once()
        self.poller.last_report = report
        return report


class BridgeRuntime:
    def __init__(
        self,
        sink: BridgeSink,
        normalizer: MessageNormalizer,
        supervisor: TaskSupervisor,
        api_factory: ApiFactory,
        *,
        options: RuntimeOptions | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._sink = sink
        self._normalizer = normalizer
        self._supervisor = supervisor
        self._api_factory = api_factory
        self._options = options or RuntimeOptions()
        self._clock = clock or SystemClock()
        self._sessions: dict[str, LoginSession] = {}
        self._lock = asyncio.Lock()

    @property
    def supervisor(self) -> TaskSupervisor:
        return self._supervisor

    def sessions(self) -> list[LoginSession]:
        return list(self._sessions.values())

    def get(self, login_id: str) -> LoginSession:
        session = self._sessions.get(login_id)
        if session is None:
            raise NotFoundError(f"Login {login_id} not found")
        return session

    def _build_session(self, login_id: str, token: str, api: HostexAPI) -> LoginSession:
        login = LoginContext(login_id=login_id)
        state = LoginSyncState(activity_max_entries=self._options.activity_max_entries)
        echo = EchoCache(window=self._options.echo_window)
        engine = ConversationSyncEngine(
            login,
            api,
            self._sink,
            self._normalizer,
            state,
            echo,
            clock=self._clock,
            conversation_limit=self._options.conversation_limit,
            page_size=self._options.page_size,
        )
        return LoginSession(
            login=login,
            api=api,
            state=state,
            echo=echo,
            engine=engine,
            poller=LoginPoller(login_id, engine.poll_once, self._options.poll_interval),
            sink=self._sink,
            clock=self._clock,
            token=token,
        )

    async def login(self, access_token: str, *, start: bool = True) -> LoginSession:
        token = login_service.normalize_token(access_token)
        login_id = login_id_for_token(token)
        async with self._lock:
            existing = self._sessions.get(login_id)
        if existing is not None:
            return self._reuse(existing, token)

        # Validation talks to Hostex, so it runs outside the registry lock.
        api = self._api_factory(token)
        try:
            await login_service.validate_token(api)
        except ValidationError:
            await api.aclose()
            raise

        async with self._lock:
            existing = self._sessions.get(login_id)
            if existing is None:
                session = self._build_session(login_id, token, api)
                self._sessions[login_id] = session
        if existing is not None:
            # Lost the race against a concurrent login for the same id.
            await api.aclose()
            return self._reuse(existing, token)

        logger.info("Logged in %s", login_id)
        if start:
            session.poller.start(self._supervisor)
        return session

    @staticmethod
    def _reuse(existing: LoginSession, token: str) -> LoginSession:
        # Login ids only keep the token's first 8 characters.
        if existing.token != token:
            raise ConflictError(
                f"Login {existing.login_id} is already held by a different access token"
            )
        return existing

    async def logout(self, login_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(login_id, None)
        if session is None:
            raise NotFoundError(f"Login {login_id} not found")
        await session.poller.stop()
        await session.api.aclose()
        logger.info("Logged out %s", login_id)

    async def login_all(self, tokens: list[str]) -> list[LoginSession]:
        sessions: list[LoginSession] = []
        for token in tokens:
            try:
                sessions.append(await self.login(token))
            except AppError as exc:
                logger.error("Skipping configured token %s...: %s", token[:4], exc.detail)
        return sessions

    async def shutdown(self) -> None:
        for login_id in list(self._sessions):
            await self.logout(login_id)
        await self._supervisor.shutdown()
