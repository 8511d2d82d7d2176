from __future__ import annotations

import jwt

from hostex_bridge.application.dto.principal import Operator


class HS256Verifier:
    """Verify operator JWTs signed with a shared secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Operator:
        if not self._secret:
            raise jwt.InvalidTokenError("operator authentication is not configured")
        payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        return Operator(
            subject=str(payload["sub"]),
            kind=str(payload.get("kind", payload.get("role", "user"))),
            roles=list(payload.get("roles", [])),
        )
