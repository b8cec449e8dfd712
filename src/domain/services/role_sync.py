from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from src.domain.errors import InvalidRequestError, RoleHasNoUsersError
from src.domain.models import RoleSyncResult
from src.domain.services.reconciliation import restore_missing_assignments
from src.infrastructure.repositories.unit_of_work import UnitOfWork

logger = structlog.get_logger()


class RoleProfileSyncService:
    """Pushes a role's training template out to everyone holding the role.

    Used after the role profile changes. Only adds missing items; existing
    assignments, complete or not, are left alone.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def sync_role_profile(self, role_id: str | None) -> RoleSyncResult:
        if not role_id:
            raise InvalidRequestError("Missing role_id")

        added = 0
        restored = 0
        async with UnitOfWork(self.session) as uow:
            async with uow.critical("load role users", role_id=role_id):
                users = await uow.users.with_role(role_id)
            if not users:
                raise RoleHasNoUsersError(f"No users found with role '{role_id}'")

            async with uow.critical("fetch role assignments", role_id=role_id):
                target = await uow.assignments.role_item_keys(role_id)

            for user in users:
                async with uow.critical("insert new assignments", auth_id=user.auth_id):
                    rows = await restore_missing_assignments(uow, user.auth_id, target)
                added += len(rows)
                restored += sum(1 for row in rows if row.completed_at is not None)

        logger.info(
            "role_profile_synced",
            role_id=role_id,
            users=len(users),
            template_items=len(target),
            added=added,
            restored=restored,
        )
        return RoleSyncResult(
            role_id=role_id,
            users_synced=len(users),
            assignments_added=added,
            completions_restored=restored,
        )
