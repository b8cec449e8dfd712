from __future__ import annotations

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from src.domain.errors import DependencyFailureError
from src.domain.models import TrainingCompletionView
from src.infrastructure.db.models import UserTrainingCompletion
from src.infrastructure.repositories.assignments import AssignmentRepository

logger = structlog.get_logger()


class TrainingMatrixService:
    """Combines live assignments with the permanent completion ledger.

    Ledger dates win for items that are still assigned; ledger-only items are
    reported with ``is_current_assignment=False`` so past training stays
    visible after a role change.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.repository = AssignmentRepository(session)

    async def list_training_completions(
        self, auth_id: str | None = None
    ) -> list[TrainingCompletionView]:
        try:
            assignments = await self.repository.list_assignments(auth_id)
        except SQLAlchemyError as exc:
            logger.error("training_matrix_assignments_failed", error=str(exc))
            raise DependencyFailureError("fetch current assignments", str(exc)) from exc

        views: dict[tuple[str, str, str], TrainingCompletionView] = {}
        for row in assignments:
            views[(row.auth_id, row.item_id, row.item_type.value)] = TrainingCompletionView(
                auth_id=row.auth_id,
                item_id=row.item_id,
                item_type=row.item_type.value,
                completed_at=row.completed_at,
                is_current_assignment=True,
            )

        history: list[UserTrainingCompletion] = []
        try:
            history = await self.repository.completion_history(auth_id)
        except SQLAlchemyError as exc:
            logger.warning("training_matrix_history_failed", error=str(exc))

        for record in history:
            key = (record.auth_id, record.item_id, record.item_type.value)
            existing = views.get(key)
            if existing is not None:
                existing.completed_at = record.completed_at
            else:
                views[key] = TrainingCompletionView(
                    auth_id=record.auth_id,
                    item_id=record.item_id,
                    item_type=record.item_type.value,
                    completed_at=record.completed_at,
                    is_current_assignment=False,
                )

        return list(views.values())
