from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy.exc import SQLAlchemyError
from src.domain.errors import DependencyFailureError
from src.domain.services import TrainingMatrixService
from src.infrastructure.db.models import ItemType, UserTrainingCompletion
from src.infrastructure.repositories.assignments import AssignmentRepository

from tests.utils import as_utc, make_assignment, seed

JAN_FIRST = datetime(2024, 1, 1, tzinfo=UTC)
LEDGER_DATE = datetime(2023, 5, 20, tzinfo=UTC)


@pytest.fixture()
async def history(session_factory) -> None:
    await seed(
        session_factory,
        make_assignment("mod-1", completed_at=JAN_FIRST),
        make_assignment("mod-2"),
        make_assignment("mod-1", auth_id="auth-2"),
        UserTrainingCompletion(
            auth_id="auth-1", item_id="mod-1", item_type=ItemType.MODULE, completed_at=LEDGER_DATE
        ),
        UserTrainingCompletion(
            auth_id="auth-1", item_id="doc-1", item_type=ItemType.DOCUMENT, completed_at=LEDGER_DATE
        ),
    )


async def matrix(session_factory, auth_id=None):
    async with session_factory() as session:
        views = await TrainingMatrixService(session).list_training_completions(auth_id)
    return {(view.auth_id, view.item_id, view.item_type): view for view in views}


@pytest.mark.usefixtures("history")
async def test_ledger_entries_overlay_and_extend_assignments(session_factory) -> None:
    views = await matrix(session_factory, "auth-1")

    assert set(views) == {
        ("auth-1", "mod-1", "module"),
        ("auth-1", "mod-2", "module"),
        ("auth-1", "doc-1", "document"),
    }
    assert as_utc(views[("auth-1", "mod-1", "module")].completed_at) == LEDGER_DATE
    assert views[("auth-1", "mod-2", "module")].completed_at is None
    assert views[("auth-1", "mod-2", "module")].is_current_assignment is True
    past = views[("auth-1", "doc-1", "document")]
    assert past.is_current_assignment is False
    assert as_utc(past.completed_at) == LEDGER_DATE


@pytest.mark.usefixtures("history")
async def test_matrix_without_filter_covers_all_users(session_factory) -> None:
    views = await matrix(session_factory)

    assert ("auth-2", "mod-1", "module") in views
    assert len(views) == 4


@pytest.mark.usefixtures("history")
async def test_history_failure_falls_back_to_assignments(session_factory, monkeypatch) -> None:
    async def explode(self, auth_id=None):
        raise SQLAlchemyError("ledger unavailable")

    monkeypatch.setattr(AssignmentRepository, "completion_history", explode)

    views = await matrix(session_factory, "auth-1")

    assert set(views) == {("auth-1", "mod-1", "module"), ("auth-1", "mod-2", "module")}
    assert as_utc(views[("auth-1", "mod-1", "module")].completed_at) == JAN_FIRST


async def test_assignment_failure_is_a_dependency_failure(session_factory, monkeypatch) -> None:
    async def explode(self, auth_id=None, *, completed=None):
        raise SQLAlchemyError("assignments unavailable")

    monkeypatch.setattr(AssignmentRepository, "list_assignments", explode)

    with pytest.raises(DependencyFailureError):
        await matrix(session_factory)
