"""Operator-invoked re-runs of the sync engine.

Each trigger spawns an independent one-shot poll per selected login. They
are safe to call while a scheduled poll is in flight: the engine's state
maps are individually locked and marks only ever move forward.
"""
from __future__ import annotations

import logging

from hostex_bridge.application.exceptions import ConflictError
from hostex_bridge.services.runtime import BridgeRuntime, LoginSession

logger = logging.getLogger(__name__)


def _select(runtime: BridgeRuntime, login_id: str | None) -> list[LoginSession]:
    if login_id is not None:
        return [runtime.get(login_id)]
    sessions = runtime.sessions()
    if not sessions:
        raise ConflictError("No active logins found. Please login first.")
    return sessions


def _spawn(runtime: BridgeRuntime, action: str, sessions: list[LoginSession]) -> list[str]:
    for session in sessions:
        runtime.supervisor.spawn(f"{action}:{session.login_id}", session.sync_now())
    return [s.login_id for s in sessions]


async def force_sync(runtime: BridgeRuntime, login_id: str | None = None) -> list[str]:
    sessions = _select(runtime, login_id)
    logger.info("Manual sync requested for %d logins", len(sessions))
    return _spawn(runtime, "sync", sessions)


async def refresh(runtime: BridgeRuntime, login_id: str | None = None) -> list[str]:
    """Forget activity markers so every listed conversation is re-fetched."""
    sessions = _select(runtime, login_id)
    for session in sessions:
        cleared = await session.state.clear_activity()
        logger.info("Cleared %d activity markers for %s", cleared, session.login_id)
    return _spawn(runtime, "refresh", sessions)


async def cleanup(runtime: BridgeRuntime, login_id: str | None = None) -> list[str]:
    """Re-sync every listed conversation so each room gets a fresh name/topic update."""
    sessions = _select(runtime, login_id)
    logger.info("Manual room cleanup initiated for %d logins", len(sessions))
    for session in sessions:
        await session.state.clear_activity()
    return _spawn(runtime, "cleanup", sessions)
