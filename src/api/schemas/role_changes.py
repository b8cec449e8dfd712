from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class RoleChangeRequest(BaseModel):
    # Optional so a missing field is reported as 400 by the service
    user_id: str | None = None
    new_role_id: str | None = None


class RoleChangeResponse(BaseModel):
    message: str
    user_id: str
    old_role_id: str | None = None
    new_role_id: str
    assignments_removed: int
    assignments_added: int
    completions_restored: int
    user_name: str


class RoleChangeLogItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    old_role_id: str | None = None
    new_role_id: str
    assignments_removed: int
    assignments_added: int
    changed_at: datetime


class RoleChangeHistoryResponse(BaseModel):
    user_id: str
    changes: list[RoleChangeLogItem]


class RoleSyncRequest(BaseModel):
    role_id: str | None = None


class RoleSyncResponse(BaseModel):
    message: str
    role_id: str
    users_synced: int
    assignments_added: int
    completions_restored: int
