from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator

import httpx
import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hostex_bridge.api.middleware.request_id import RequestIdMiddleware
from hostex_bridge.api.v1.routers import health, logins, triggers
from hostex_bridge.application.exceptions import (
    ConflictError,
    ForbiddenError,
    HostexError,
    NotFoundError,
    ValidationError,
)
from hostex_bridge.config import VERSION, settings
from hostex_bridge.infrastructure.bridge.redis_sink import RedisBridgeSink
from hostex_bridge.infrastructure.hostex.client import HostexClient
from hostex_bridge.infrastructure.media.http_uploader import HttpMediaUploader
from hostex_bridge.services.normalizer import MessageNormalizer
from hostex_bridge.services.runtime import BridgeRuntime, RuntimeOptions
from hostex_bridge.workers.outbound_consumer import build_consumer
from hostex_bridge.workers.poller import TaskSupervisor

logger = logging.getLogger(__name__)


def runtime_options() -> RuntimeOptions:
    return RuntimeOptions(
        poll_interval=settings.SYNC_POLL_INTERVAL,
        conversation_limit=settings.SYNC_CONVERSATION_LIMIT,
        page_size=settings.SYNC_LIST_PAGE_SIZE,
        echo_window=timedelta(seconds=settings.ECHO_WINDOW_SECONDS),
        activity_max_entries=settings.ACTIVITY_CACHE_MAX_ENTRIES,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    media_http = httpx.AsyncClient(
        timeout=settings.ATTACHMENT_TIMEOUT_SECONDS,
        follow_redirects=True,
    )

    supervisor = TaskSupervisor(history_size=settings.FAILURE_HISTORY_SIZE)
    runtime = BridgeRuntime(
        sink=RedisBridgeSink(
            app.state.redis,
            settings.BRIDGE_EVENTS_STREAM,
            settings.BRIDGE_ROOMS_KEY,
        ),
        normalizer=MessageNormalizer(
            media_http,
            HttpMediaUploader(media_http, settings.MEDIA_UPLOAD_URL, settings.MEDIA_UPLOAD_TOKEN),
        ),
        supervisor=supervisor,
        api_factory=HostexClient,
        options=runtime_options(),
    )
    app.state.runtime = runtime

    sessions = await runtime.login_all(settings.HOSTEX_ACCESS_TOKENS)
    logger.info("Started %d configured Hostex logins", len(sessions))

    consumer = build_consumer(app.state.redis, runtime)
    supervisor.spawn("outbound-consumer", consumer.run())

    yield

    await runtime.shutdown()
    await media_http.aclose()
    await app.state.redis.aclose()
    logger.info("Bridge runtime stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Hostex Bridge",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(logins.router)
    app.include_router(triggers.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(ConflictError)
    async def _conflict(_req: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(HostexError)
    async def _upstream(_req: Request, exc: HostexError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})
