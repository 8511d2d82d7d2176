from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Operator:
    """Authenticated caller of the operator API, extracted from a JWT."""

    subject: str
    kind: str = "user"
    roles: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.kind == "admin" or "admin" in self.roles
