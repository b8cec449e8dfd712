from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from src.infrastructure.db.models import Role, UserModel, UserRoleChangeLog

if TYPE_CHECKING:
    from sqlalchemy import Select


@dataclass
class UserRepository:
    """Users, roles and the role change audit trail."""

    session: AsyncSession

    async def get(self, user_id: str) -> UserModel | None:
        return await self.session.get(UserModel, user_id)

    async def get_by_auth_id(self, auth_id: str) -> UserModel | None:
        stmt: Select[tuple[UserModel]] = select(UserModel).where(UserModel.auth_id == auth_id)
        return await self.session.scalar(stmt)

    async def get_role(self, role_id: str) -> Role | None:
        return await self.session.get(Role, role_id)

    async def with_role(self, role_id: str) -> list[UserModel]:
        stmt: Select[tuple[UserModel]] = (
            select(UserModel).where(UserModel.role_id == role_id).order_by(UserModel.auth_id)
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def roles_in_use(self) -> list[str]:
        stmt = select(UserModel.role_id).where(UserModel.role_id.is_not(None)).distinct()
        return sorted(role_id for role_id in (await self.session.execute(stmt)).scalars())

    def log_role_change(
        self,
        *,
        user_id: str,
        old_role_id: str | None,
        new_role_id: str,
        assignments_removed: int,
        assignments_added: int,
        changed_at: datetime,
    ) -> UserRoleChangeLog:
        entry = UserRoleChangeLog(
            user_id=user_id,
            old_role_id=old_role_id,
            new_role_id=new_role_id,
            assignments_removed=assignments_removed,
            assignments_added=assignments_added,
            changed_at=changed_at,
        )
        self.session.add(entry)
        return entry

    async def role_changes(self, user_id: str) -> list[UserRoleChangeLog]:
        stmt: Select[tuple[UserRoleChangeLog]] = (
            select(UserRoleChangeLog)
            .where(UserRoleChangeLog.user_id == user_id)
            .order_by(UserRoleChangeLog.changed_at.desc(), UserRoleChangeLog.id.desc())
        )
        return list((await self.session.execute(stmt)).scalars().all())
