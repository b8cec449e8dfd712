"""
Training completion recording.

A trainer records the outcome of a session against one assigned item. Only a
``completed`` outcome closes the assignment; ``needs_improvement`` and
``failed`` leave it open for a retake. Every outcome leaves one training log
row per user, topic and day.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import UTC, date, datetime
from enum import Enum
from typing import TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from src.core.config import get_settings
from src.domain.errors import AssignmentNotFoundError, InvalidRequestError
from src.domain.models import CompletionResult, ItemKey
from src.domain.periods import follow_up_due, refresh_due
from src.infrastructure.db.models import ItemType, TrainingOutcome
from src.infrastructure.repositories.unit_of_work import UnitOfWork

logger = structlog.get_logger()

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

E = TypeVar("E", bound=Enum)


def parse_completed_date(value: str | None) -> datetime:
    """Resolve the completion timestamp; a bare ``YYYY-MM-DD`` means UTC midnight."""
    if not value:
        return datetime.now(UTC)
    try:
        if _DATE_ONLY.match(value):
            day = date.fromisoformat(value)
            return datetime(day.year, day.month, day.day, tzinfo=UTC)
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidRequestError(f"Invalid completed_date '{value}'") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def training_log_topic(key: ItemKey) -> str:
    """Log topic for an item; documents are prefixed so they never share a module's row."""
    if key.item_type is ItemType.MODULE:
        return key.item_id
    return f"{key.item_type.value}:{key.item_id}"


def _parse_choice(enum_cls: type[E], value: str, field: str) -> E:
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidRequestError(f"Invalid {field} '{value}'. Expected one of: {allowed}") from exc


class TrainingCompletionService:
    """Records training outcomes against user assignments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record_completion(
        self,
        *,
        auth_id: str | None,
        item_id: str | None,
        item_type: str | None,
        completed_date: str | None = None,
        training_outcome: str | None = None,
        linked_document_ids: Sequence[str] | None = None,
        duration_hours: float | None = None,
        notes: str | None = None,
    ) -> CompletionResult:
        if not auth_id or not item_id or not item_type:
            raise InvalidRequestError("Missing auth_id, item_id or item_type")

        kind = _parse_choice(ItemType, item_type, "item_type")
        outcome = _parse_choice(
            TrainingOutcome, training_outcome or TrainingOutcome.COMPLETED.value, "training_outcome"
        )
        completed_at = parse_completed_date(completed_date)
        if duration_hours is None:
            duration_hours = get_settings().default_training_hours
        elif duration_hours <= 0:
            raise InvalidRequestError("duration_hours must be positive")

        key = ItemKey(item_id=item_id, item_type=kind)
        is_completed = outcome is TrainingOutcome.COMPLETED
        result = CompletionResult(
            auth_id=auth_id,
            item_id=item_id,
            item_type=kind.value,
            training_outcome=outcome.value,
            completed_at=completed_at if is_completed else None,
        )
        log = logger.bind(auth_id=auth_id, item_id=item_id, item_type=kind.value)

        async with UnitOfWork(self.session) as uow:
            async with uow.critical("load assignment", auth_id=auth_id):
                assignment = await uow.assignments.get_assignment(auth_id, key)
            role_id: str | None = None

            if is_completed:
                if assignment is None:
                    raise AssignmentNotFoundError(
                        f"No {kind.value} assignment '{item_id}' for user '{auth_id}'"
                    )
                async with uow.critical("load user and module", auth_id=auth_id):
                    user = await uow.users.get_by_auth_id(auth_id)
                    module = (
                        await uow.assignments.get_module(item_id)
                        if kind is ItemType.MODULE
                        else None
                    )
                role_id = user.role_id if user else None

                async with uow.critical("update assignment completion", auth_id=auth_id):
                    assignment.completed_at = completed_at
                    assignment.training_outcome = outcome
                    if module is not None:
                        assignment.follow_up_due_at = follow_up_due(
                            completed_at,
                            requires_follow_up=module.requires_follow_up,
                            period=module.follow_up_period,
                        )
                        assignment.refresh_due_at = refresh_due(completed_at, module.refresh_period)
                        result.follow_up_due_at = assignment.follow_up_due_at
                        result.refresh_due_at = assignment.refresh_due_at

                async with uow.best_effort("record permanent completion", auth_id=auth_id):
                    await uow.assignments.upsert_completion(
                        auth_id, key, completed_at=completed_at, completed_by_role_id=role_id
                    )
            elif assignment is not None:
                async with uow.critical("update assignment outcome", auth_id=auth_id):
                    assignment.training_outcome = outcome

            async with uow.best_effort("upsert training log", auth_id=auth_id) as step:
                await uow.training_logs.upsert(
                    auth_id=auth_id,
                    topic=training_log_topic(key),
                    log_date=completed_at.date(),
                    outcome=outcome,
                    duration_hours=duration_hours,
                    notes=notes,
                )
            result.training_log_recorded = step.ok

            if is_completed and kind is ItemType.MODULE and linked_document_ids:
                result.linked_documents_completed = await self._complete_linked_documents(
                    uow,
                    auth_id=auth_id,
                    document_ids=linked_document_ids,
                    completed_at=completed_at,
                    role_id=role_id,
                )

        log.info(
            "training_completion_recorded",
            outcome=outcome.value,
            completed_at=result.completed_at.isoformat() if result.completed_at else None,
            linked_documents=len(result.linked_documents_completed),
        )
        return result

    async def _complete_linked_documents(
        self,
        uow: UnitOfWork,
        *,
        auth_id: str,
        document_ids: Sequence[str],
        completed_at: datetime,
        role_id: str | None,
    ) -> list[str]:
        completed: list[str] = []
        for document_id in dict.fromkeys(document_ids):
            key = ItemKey(item_id=document_id, item_type=ItemType.DOCUMENT)
            async with uow.best_effort(
                "complete linked document", auth_id=auth_id, document_id=document_id
            ) as step:
                assignment = await uow.assignments.get_assignment(auth_id, key)
                if assignment is None:
                    step.ok = False
                    logger.warning(
                        "linked_document_not_assigned", auth_id=auth_id, document_id=document_id
                    )
                else:
                    assignment.completed_at = completed_at
                    assignment.training_outcome = TrainingOutcome.COMPLETED
                    await uow.assignments.upsert_completion(
                        auth_id, key, completed_at=completed_at, completed_by_role_id=role_id
                    )
            if step.ok:
                completed.append(document_id)
        return completed
