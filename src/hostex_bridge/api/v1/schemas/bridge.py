from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    access_token: str = Field(min_length=1)


class SyncReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    login_id: str
    started_at: datetime
    listed: int
    skipped: int
    synced: int
    emitted: int
    suppressed: int
    list_failed: bool
    failed: list[str]


class LoginResponse(BaseModel):
    login_id: str
    last_report: SyncReportResponse | None = None


class TriggerResponse(BaseModel):
    action: str
    login_ids: list[str]


class PortalKeyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    receiver: str


class UserInfoResponse(BaseModel):
    user_id: str
    name: str
    is_this_user: bool


class TaskFailureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    task_name: str
    error: str
    failed_at: datetime
