from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Property:
    id: int
    title: str
    address: str = ""
    timezone: str = ""
