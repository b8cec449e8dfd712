from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from src.api.deps import issue_smoke_token
from src.core.auth import AccessLevel
from src.infrastructure.db.models import (
    ItemType,
    TrainingLog,
    UserAssignment,
    UserModel,
    UserTrainingCompletion,
)

ROLE_R1 = "role-r1"
ROLE_R2 = "role-r2"
ROLE_R3 = "role-r3"
ROLE_MIXED = "role-mixed"
ROLE_EMPTY = "role-empty"


def auth_headers(user_id: str = "admin-1", level: AccessLevel = AccessLevel.ADMIN) -> dict[str, str]:
    token = issue_smoke_token(user_id, level=level, email="admin@example.com")
    return {"Authorization": f"Bearer {token}"}


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; compare everything as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


async def seed(session_factory: async_sessionmaker[AsyncSession], *objects: Any) -> None:
    async with session_factory() as session:
        session.add_all(objects)
        await session.commit()


def make_user(
    user_id: str = "user-1",
    *,
    auth_id: str = "auth-1",
    role_id: str | None = None,
    first_name: str = "Dana",
    last_name: str = "Okafor",
) -> UserModel:
    return UserModel(
        id=user_id,
        auth_id=auth_id,
        role_id=role_id,
        first_name=first_name,
        last_name=last_name,
        email=f"{auth_id}@example.com",
    )


def make_assignment(
    item_id: str,
    *,
    auth_id: str = "auth-1",
    item_type: ItemType = ItemType.MODULE,
    completed_at: datetime | None = None,
) -> UserAssignment:
    return UserAssignment(
        auth_id=auth_id,
        item_id=item_id,
        item_type=item_type,
        assigned_at=datetime(2023, 6, 1, tzinfo=UTC),
        completed_at=completed_at,
    )


async def fetch_assignments(
    session_factory: async_sessionmaker[AsyncSession], auth_id: str = "auth-1"
) -> dict[tuple[str, str], UserAssignment]:
    async with session_factory() as session:
        rows = (
            await session.execute(select(UserAssignment).where(UserAssignment.auth_id == auth_id))
        ).scalars()
        return {(row.item_id, row.item_type.value): row for row in rows}


async def fetch_ledger(
    session_factory: async_sessionmaker[AsyncSession], auth_id: str = "auth-1"
) -> dict[tuple[str, str], UserTrainingCompletion]:
    async with session_factory() as session:
        rows = (
            await session.execute(
                select(UserTrainingCompletion).where(UserTrainingCompletion.auth_id == auth_id)
            )
        ).scalars()
        return {(row.item_id, row.item_type.value): row for row in rows}


async def fetch_training_logs(
    session_factory: async_sessionmaker[AsyncSession], auth_id: str = "auth-1"
) -> list[TrainingLog]:
    async with session_factory() as session:
        stmt = (
            select(TrainingLog)
            .where(TrainingLog.auth_id == auth_id)
            .order_by(TrainingLog.log_date, TrainingLog.id)
        )
        return list((await session.execute(stmt)).scalars().all())


async def fetch_user(
    session_factory: async_sessionmaker[AsyncSession], user_id: str = "user-1"
) -> UserModel | None:
    async with session_factory() as session:
        return await session.get(UserModel, user_id)
