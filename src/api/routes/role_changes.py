from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from src.api.deps import get_db_session, require_access
from src.api.schemas.role_changes import (
    RoleChangeHistoryResponse,
    RoleChangeLogItem,
    RoleChangeRequest,
    RoleChangeResponse,
    RoleSyncRequest,
    RoleSyncResponse,
)
from src.domain import User
from src.domain.errors import (
    InvalidRequestError,
    RoleHasNoUsersError,
    RoleNotFoundError,
    UserNotFoundError,
)
from src.domain.services import RoleChangeService, RoleProfileSyncService

router = APIRouter(prefix="/api", tags=["Role changes"])
logger = structlog.get_logger()


@router.post("/change-user-role-assignments", response_model=RoleChangeResponse)
async def change_user_role_assignments(
    payload: RoleChangeRequest,
    session: AsyncSession = Depends(get_db_session),
    admin: User = Depends(require_access(["admin"])),
) -> RoleChangeResponse:
    """
    Move a user to a new role and reconcile their training assignments.

    - Completed assignments are always kept
    - Open assignments outside the new role are removed
    - Missing role items are added, restoring earlier completion dates
    """
    service = RoleChangeService(session)
    try:
        result = await service.reconcile_role_change(
            user_id=payload.user_id, new_role_id=payload.new_role_id
        )
    except InvalidRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except (UserNotFoundError, RoleNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    logger.info("role_change_requested", admin_user=admin.user_id, user_id=result.user_id)
    return RoleChangeResponse(
        message="Role change completed successfully",
        user_id=result.user_id,
        old_role_id=result.old_role_id,
        new_role_id=result.new_role_id,
        assignments_removed=result.assignments_removed,
        assignments_added=result.assignments_added,
        completions_restored=result.completions_restored,
        user_name=result.user_name,
    )


@router.get("/users/{user_id}/role-changes", response_model=RoleChangeHistoryResponse)
async def list_role_changes(
    user_id: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_access(["admin"])),
) -> RoleChangeHistoryResponse:
    """Role change audit trail for one user, newest first."""
    service = RoleChangeService(session)
    try:
        changes = await service.list_role_changes(user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return RoleChangeHistoryResponse(
        user_id=user_id,
        changes=[RoleChangeLogItem.model_validate(change) for change in changes],
    )


@router.post("/sync-training-from-profile", response_model=RoleSyncResponse)
async def sync_training_from_profile(
    payload: RoleSyncRequest,
    session: AsyncSession = Depends(get_db_session),
    admin: User = Depends(require_access(["admin"])),
) -> RoleSyncResponse:
    """Assign a role's current training template to every user holding the role."""
    service = RoleProfileSyncService(session)
    try:
        result = await service.sync_role_profile(payload.role_id)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RoleHasNoUsersError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    logger.info("role_profile_sync_requested", admin_user=admin.user_id, role_id=result.role_id)
    return RoleSyncResponse(
        message="Role training synced",
        role_id=result.role_id,
        users_synced=result.users_synced,
        assignments_added=result.assignments_added,
        completions_restored=result.completions_restored,
    )
