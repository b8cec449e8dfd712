from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from src.domain.models import ItemKey
from src.infrastructure.db.models import (
    Module,
    RoleAssignment,
    TrainingOutcome,
    UserAssignment,
    UserTrainingCompletion,
)

if TYPE_CHECKING:
    from sqlalchemy import Select

logger = structlog.get_logger()


def assignment_key(row: UserAssignment | UserTrainingCompletion) -> ItemKey:
    return ItemKey(item_id=row.item_id, item_type=row.item_type)


@dataclass
class AssignmentRepository:
    """Role templates, modules, live user assignments and the completion ledger."""

    session: AsyncSession

    async def role_item_keys(self, role_id: str) -> list[ItemKey]:
        """Return the role's template items, deduplicated by ``(type, item_id)``."""
        stmt: Select[tuple[RoleAssignment]] = (
            select(RoleAssignment)
            .where(RoleAssignment.role_id == role_id)
            .order_by(RoleAssignment.id)
        )
        rows = (await self.session.execute(stmt)).scalars().all()

        keys: dict[ItemKey, None] = {}
        for row in rows:
            if row.item_id is None:
                logger.warning("role_assignment_missing_item", role_id=role_id, row_id=row.id)
                continue
            keys.setdefault(ItemKey(item_id=row.item_id, item_type=row.type), None)
        return list(keys)

    async def get_module(self, module_id: str) -> Module | None:
        return await self.session.get(Module, module_id)

    async def list_assignments(
        self,
        auth_id: str | None = None,
        *,
        completed: bool | None = None,
    ) -> list[UserAssignment]:
        stmt: Select[tuple[UserAssignment]] = select(UserAssignment).order_by(UserAssignment.id)
        if auth_id is not None:
            stmt = stmt.where(UserAssignment.auth_id == auth_id)
        if completed is True:
            stmt = stmt.where(UserAssignment.completed_at.is_not(None))
        elif completed is False:
            stmt = stmt.where(UserAssignment.completed_at.is_(None))
        return list((await self.session.execute(stmt)).scalars().all())

    async def get_assignment(self, auth_id: str, key: ItemKey) -> UserAssignment | None:
        stmt: Select[tuple[UserAssignment]] = select(UserAssignment).where(
            UserAssignment.auth_id == auth_id,
            UserAssignment.item_id == key.item_id,
            UserAssignment.item_type == key.item_type,
        )
        return await self.session.scalar(stmt)

    async def delete_open_assignments(self, assignment_ids: Sequence[int]) -> int:
        """Delete the given assignments, skipping any that carry a completion."""
        if not assignment_ids:
            return 0
        stmt = (
            delete(UserAssignment)
            .where(
                UserAssignment.id.in_(assignment_ids),
                UserAssignment.completed_at.is_(None),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    def add_assignments(
        self,
        auth_id: str,
        keys: Iterable[ItemKey],
        *,
        assigned_at: datetime,
        restored: dict[ItemKey, datetime],
    ) -> list[UserAssignment]:
        rows = [
            UserAssignment(
                auth_id=auth_id,
                item_id=key.item_id,
                item_type=key.item_type,
                assigned_at=assigned_at,
                completed_at=restored.get(key),
                training_outcome=TrainingOutcome.COMPLETED if key in restored else None,
            )
            for key in keys
        ]
        self.session.add_all(rows)
        return rows

    async def completion_history(self, auth_id: str | None = None) -> list[UserTrainingCompletion]:
        stmt: Select[tuple[UserTrainingCompletion]] = select(UserTrainingCompletion).order_by(
            UserTrainingCompletion.id
        )
        if auth_id is not None:
            stmt = stmt.where(UserTrainingCompletion.auth_id == auth_id)
        return list((await self.session.execute(stmt)).scalars().all())

    async def upsert_completion(
        self,
        auth_id: str,
        key: ItemKey,
        *,
        completed_at: datetime,
        completed_by_role_id: str | None,
    ) -> UserTrainingCompletion:
        """Insert or refresh the ledger row for ``(auth_id, item_id, item_type)``."""
        stmt: Select[tuple[UserTrainingCompletion]] = select(UserTrainingCompletion).where(
            UserTrainingCompletion.auth_id == auth_id,
            UserTrainingCompletion.item_id == key.item_id,
            UserTrainingCompletion.item_type == key.item_type,
        )
        record = await self.session.scalar(stmt)
        if record is None:
            record = UserTrainingCompletion(
                auth_id=auth_id,
                item_id=key.item_id,
                item_type=key.item_type,
                completed_at=completed_at,
                completed_by_role_id=completed_by_role_id,
            )
            self.session.add(record)
        else:
            record.completed_at = completed_at
            if record.completed_by_role_id is None:
                record.completed_by_role_id = completed_by_role_id
        await self.session.flush()
        return record
