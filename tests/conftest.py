from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from src.api.deps import get_db_session
from src.api.main import app
from src.core.auth import create_access_token
from src.infrastructure.db.base import Base
from src.infrastructure.db.models import Document, ItemType, Module, Role, RoleAssignment

from tests.utils import ROLE_EMPTY, ROLE_MIXED, ROLE_R1, ROLE_R2, ROLE_R3, seed


@pytest.fixture()
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'training.db'}")

    # Let SQLAlchemy own BEGIN so SAVEPOINTs nest inside the outer transaction
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture()
async def catalog(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Role templates used across the suite.

    role-r1    -> mod-1, mod-2
    role-r2    -> mod-2 (listed twice), mod-3
    role-r3    -> mod-2
    role-mixed -> module item-7, document item-7, doc-1
    role-empty -> nothing
    """
    await seed(
        session_factory,
        Role(id=ROLE_R1, title="Line Operative"),
        Role(id=ROLE_R2, title="Hygiene Lead"),
        Role(id=ROLE_R3, title="Dispatch Assistant"),
        Role(id=ROLE_MIXED, title="Shift Supervisor"),
        Role(id=ROLE_EMPTY, title="Visitor"),
        Module(id="mod-1", name="Allergen Awareness"),
        Module(
            id="mod-2",
            name="Food Hygiene Level 2",
            requires_follow_up=True,
            follow_up_period="2 weeks",
            refresh_period="1 year",
        ),
        Module(id="mod-3", name="Cleaning Chemicals"),
        Module(id="mod-4", name="Forklift Induction"),
        Document(id="doc-1", title="Cleaning Schedule SOP"),
        Module(id="item-7", name="Fire Safety"),
        Document(id="doc-2", title="Chemical Dilution Chart"),
        Document(id="item-7", title="Fire Evacuation Plan"),
        RoleAssignment(role_id=ROLE_R1, type=ItemType.MODULE, module_id="mod-1"),
        RoleAssignment(role_id=ROLE_R1, type=ItemType.MODULE, module_id="mod-2"),
        RoleAssignment(role_id=ROLE_R2, type=ItemType.MODULE, module_id="mod-2"),
        RoleAssignment(role_id=ROLE_R2, type=ItemType.MODULE, module_id="mod-2"),
        RoleAssignment(role_id=ROLE_R2, type=ItemType.MODULE, module_id="mod-3"),
        RoleAssignment(role_id=ROLE_R3, type=ItemType.MODULE, module_id="mod-2"),
        RoleAssignment(role_id=ROLE_MIXED, type=ItemType.MODULE, module_id="item-7"),
        RoleAssignment(role_id=ROLE_MIXED, type=ItemType.DOCUMENT, document_id="item-7"),
        RoleAssignment(role_id=ROLE_MIXED, type=ItemType.DOCUMENT, document_id="doc-1"),
    )


@pytest.fixture()
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client bound to the per-test database."""

    async def override_db_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db_session, None)


@pytest.fixture()
def admin_token() -> str:
    return create_access_token("admin-user", access_levels=["admin"])


@pytest.fixture()
def trainer_token() -> str:
    return create_access_token("trainer-user", access_levels=["trainer"])


@pytest.fixture()
def user_token() -> str:
    return create_access_token("plain-user", access_levels=["user"])
