from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from src.domain.errors import DependencyFailureError

from .assignments import AssignmentRepository
from .training_logs import TrainingLogRepository
from .users import UserRepository

logger = structlog.get_logger()


@dataclass
class StepOutcome:
    step: str
    ok: bool = True
    error: str | None = None


class UnitOfWork:
    """One transaction over the training tables.

    Commits on a clean exit and rolls back when the block raises. Steps run
    through ``critical`` abort the whole unit; steps run through
    ``best_effort`` get their own SAVEPOINT and only log on failure.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.assignments = AssignmentRepository(session)
        self.training_logs = TrainingLogRepository(session)

    async def __aenter__(self) -> UnitOfWork:
        logger.debug("uow_enter")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            await self.commit()
        logger.debug("uow_exit", exc_type=str(exc_type) if exc_type else None)

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("uow_commit_failed", error=str(exc))
            raise DependencyFailureError("commit changes", str(exc)) from exc
        logger.debug("uow_commit")

    async def rollback(self) -> None:
        await self.session.rollback()
        logger.debug("uow_rollback")

    @asynccontextmanager
    async def critical(self, step: str, **context: Any) -> AsyncIterator[None]:
        """Run a required step; data-store errors become ``DependencyFailureError``."""
        try:
            yield
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.error("critical_step_failed", step=step, error=str(exc), **context)
            raise DependencyFailureError(step, str(exc)) from exc

    @asynccontextmanager
    async def best_effort(self, step: str, **context: Any) -> AsyncIterator[StepOutcome]:
        """Run an optional step inside a SAVEPOINT; failures are logged and swallowed."""
        outcome = StepOutcome(step=step)
        try:
            async with self.session.begin_nested():
                yield outcome
        except SQLAlchemyError as exc:
            outcome.ok = False
            outcome.error = str(exc)
            logger.warning("best_effort_step_failed", step=step, error=str(exc), **context)
