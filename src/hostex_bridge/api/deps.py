"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hostex_bridge.application.dto.principal import Operator
from hostex_bridge.application.exceptions import ForbiddenError
from hostex_bridge.config import settings
from hostex_bridge.infrastructure.auth.hs256_verifier import HS256Verifier
from hostex_bridge.services.runtime import BridgeRuntime

_bearer_scheme = HTTPBearer()


def get_runtime(request: Request) -> BridgeRuntime:
    return request.app.state.runtime


RuntimeDep = Annotated[BridgeRuntime, Depends(get_runtime)]


def get_verifier() -> HS256Verifier:
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


async def get_current_operator(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
    verifier: Annotated[HS256Verifier, Depends(get_verifier)],
) -> Operator:
    try:
        operator = await verifier.verify(credentials.credentials)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    if not operator.is_admin:
        raise ForbiddenError("Admin access required")
    return operator


CurrentOperator = Annotated[Operator, Depends(get_current_operator)]
