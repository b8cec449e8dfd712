"""
Role change reconciliation.

When a user moves to a new role their live assignments are diffed against the
new role's template:

- completed assignments are never deleted, whatever the new role requires
- open assignments the new role does not require are removed
- required items the user lacks are added, restoring the completion date from
  the permanent ledger when the user finished that item before

Everything from the ledger mirror to the audit row runs in one unit of work,
so a failed delete or insert also undoes the ``role_id`` update.
"""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from src.domain.errors import InvalidRequestError, RoleNotFoundError, UserNotFoundError
from src.domain.models import ItemKey, ReconciliationResult
from src.infrastructure.db.models import UserAssignment, UserRoleChangeLog
from src.infrastructure.repositories.assignments import assignment_key
from src.infrastructure.repositories.unit_of_work import UnitOfWork

logger = structlog.get_logger()


class RoleChangeService:
    """Moves a user to a new role and reconciles their training assignments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def reconcile_role_change(
        self, *, user_id: str | None, new_role_id: str | None
    ) -> ReconciliationResult:
        if not user_id or not new_role_id:
            raise InvalidRequestError("Missing user_id or new_role_id")

        async with UnitOfWork(self.session) as uow:
            async with uow.critical("load user and role", user_id=user_id):
                user = await uow.users.get(user_id)
                role = await uow.users.get_role(new_role_id)
            if user is None:
                raise UserNotFoundError(f"User '{user_id}' not found")
            if role is None:
                raise RoleNotFoundError(f"Role '{new_role_id}' not found")

            auth_id = user.auth_id
            old_role_id = user.role_id
            user_name = user.display_name
            log = logger.bind(user_id=user_id, old_role_id=old_role_id, new_role_id=new_role_id)
            log.info("role_change_started")

            async with uow.best_effort("mirror completed assignments", user_id=user_id):
                completed = await uow.assignments.list_assignments(auth_id, completed=True)
                for row in completed:
                    await uow.assignments.upsert_completion(
                        auth_id,
                        assignment_key(row),
                        completed_at=row.completed_at,
                        completed_by_role_id=old_role_id,
                    )
                log.info("role_change_completions_mirrored", count=len(completed))

            async with uow.critical("update user role", user_id=user_id):
                user.role_id = new_role_id

            async with uow.critical("fetch new role assignments", role_id=new_role_id):
                target = await uow.assignments.role_item_keys(new_role_id)
            target_set = set(target)

            async with uow.critical("remove old assignments", user_id=user_id):
                open_rows = await uow.assignments.list_assignments(auth_id, completed=False)
                stale_ids = [row.id for row in open_rows if assignment_key(row) not in target_set]
                removed = await uow.assignments.delete_open_assignments(stale_ids)
            log.info("role_change_assignments_removed", removed=removed)

            async with uow.critical("insert new assignments", user_id=user_id):
                added_rows = await restore_missing_assignments(uow, auth_id, target)
            restored = sum(1 for row in added_rows if row.completed_at is not None)
            log.info("role_change_assignments_added", added=len(added_rows), restored=restored)

            async with uow.best_effort("log role change", user_id=user_id):
                uow.users.log_role_change(
                    user_id=user_id,
                    old_role_id=old_role_id,
                    new_role_id=new_role_id,
                    assignments_removed=removed,
                    assignments_added=len(added_rows),
                    changed_at=datetime.now(UTC),
                )

        log.info("role_change_completed")
        return ReconciliationResult(
            user_id=user_id,
            old_role_id=old_role_id,
            new_role_id=new_role_id,
            assignments_removed=removed,
            assignments_added=len(added_rows),
            completions_restored=restored,
            user_name=user_name,
        )

    async def list_role_changes(self, user_id: str) -> list[UserRoleChangeLog]:
        """Audit trail for one user, newest first."""
        async with UnitOfWork(self.session) as uow:
            async with uow.critical("load role change history", user_id=user_id):
                user = await uow.users.get(user_id)
                changes = await uow.users.role_changes(user_id) if user else []
            if user is None:
                raise UserNotFoundError(f"User '{user_id}' not found")
        return changes


async def restore_missing_assignments(
    uow: UnitOfWork, auth_id: str, target: list[ItemKey]
) -> list[UserAssignment]:
    """Add every ``target`` item ``auth_id`` lacks, restoring ledger dates. Never deletes."""
    current = await uow.assignments.list_assignments(auth_id)
    existing = {assignment_key(row) for row in current}
    history = await _restorable_completions(uow, auth_id, existing)
    missing = [key for key in target if key not in existing]
    return uow.assignments.add_assignments(
        auth_id, missing, assigned_at=datetime.now(UTC), restored=history
    )


async def _restorable_completions(
    uow: UnitOfWork, auth_id: str, existing: set[ItemKey]
) -> dict[ItemKey, datetime]:
    """Ledger completion dates for items the user holds no live row for."""
    restorable: dict[ItemKey, datetime] = {}
    for record in await uow.assignments.completion_history(auth_id):
        key = assignment_key(record)
        if key not in existing:
            restorable[key] = record.completed_at
    return restorable
