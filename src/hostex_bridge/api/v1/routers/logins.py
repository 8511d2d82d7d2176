from __future__ import annotations

from fastapi import APIRouter, Response

from hostex_bridge.api.deps import CurrentOperator, RuntimeDep
from hostex_bridge.api.v1.schemas.bridge import (
    LoginRequest,
    LoginResponse,
    PortalKeyResponse,
    SyncReportResponse,
    TaskFailureResponse,
    UserInfoResponse,
)
from hostex_bridge.services import identity_service
from hostex_bridge.services.runtime import LoginSession

router = APIRouter(prefix="/api/v1/bridge", tags=["logins"])


def _login_response(session: LoginSession) -> LoginResponse:
    report = session.last_report
    return LoginResponse(
        login_id=session.login_id,
        last_report=SyncReportResponse.model_validate(report) if report else None,
    )


@router.get("/logins", response_model=list[LoginResponse])
async def list_logins(operator: CurrentOperator, runtime: RuntimeDep) -> list[LoginResponse]:
    return [_login_response(s) for s in runtime.sessions()]


@router.post("/logins", response_model=LoginResponse, status_code=201)
async def create_login(
    body: LoginRequest,
    operator: CurrentOperator,
    runtime: RuntimeDep,
) -> LoginResponse:
    session = await runtime.login(body.access_token)
    return _login_response(session)


@router.delete("/logins/{login_id}", status_code=204)
async def delete_login(login_id: str, operator: CurrentOperator, runtime: RuntimeDep) -> Response:
    await runtime.logout(login_id)
    return Response(status_code=204)


@router.get("/logins/{login_id}/identifiers/{identifier}", response_model=PortalKeyResponse)
async def resolve_identifier(
    login_id: str,
    identifier: str,
    operator: CurrentOperator,
    runtime: RuntimeDep,
) -> PortalKeyResponse:
    portal_key = await identity_service.resolve_identifier(runtime.get(login_id), identifier)
    return PortalKeyResponse.model_validate(portal_key)


@router.get("/logins/{login_id}/ghosts/{user_id}", response_model=UserInfoResponse)
async def get_user_info(
    login_id: str,
    user_id: str,
    operator: CurrentOperator,
    runtime: RuntimeDep,
) -> UserInfoResponse:
    name = await identity_service.user_info(runtime.get(login_id), user_id)
    return UserInfoResponse(
        user_id=user_id,
        name=name,
        is_this_user=identity_service.is_this_user(user_id),
    )


@router.get("/failures", response_model=list[TaskFailureResponse])
async def list_failures(operator: CurrentOperator, runtime: RuntimeDep) -> list[TaskFailureResponse]:
    return [TaskFailureResponse.model_validate(f) for f in runtime.supervisor.failures]
