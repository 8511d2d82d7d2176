from __future__ import annotations

from fastapi import APIRouter, Query

from hostex_bridge.api.deps import CurrentOperator, RuntimeDep
from hostex_bridge.api.v1.schemas.bridge import TriggerResponse
from hostex_bridge.services import trigger_service

router = APIRouter(prefix="/api/v1/bridge", tags=["triggers"])


@router.post("/sync", response_model=TriggerResponse, status_code=202)
async def force_sync(
    operator: CurrentOperator,
    runtime: RuntimeDep,
    login_id: str | None = Query(None),
) -> TriggerResponse:
    login_ids = await trigger_service.force_sync(runtime, login_id)
    return TriggerResponse(action="sync", login_ids=login_ids)


@router.post("/refresh", response_model=TriggerResponse, status_code=202)
async def refresh(
    operator: CurrentOperator,
    runtime: RuntimeDep,
    login_id: str | None = Query(None),
) -> TriggerResponse:
    login_ids = await trigger_service.refresh(runtime, login_id)
    return TriggerResponse(action="refresh", login_ids=login_ids)


@router.post("/cleanup", response_model=TriggerResponse, status_code=202)
async def cleanup(
    operator: CurrentOperator,
    runtime: RuntimeDep,
    login_id: str | None = Query(None),
) -> TriggerResponse:
    login_ids = await trigger_service.cleanup(runtime, login_id)
    return TriggerResponse(action="cleanup", login_ids=login_ids)
