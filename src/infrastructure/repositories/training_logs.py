from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from src.infrastructure.db.models import TrainingLog, TrainingOutcome


@dataclass
class TrainingLogRepository:
    session: AsyncSession

    async def upsert(
        self,
        *,
        auth_id: str,
        topic: str,
        log_date: date,
        outcome: TrainingOutcome,
        duration_hours: float,
        notes: str | None,
    ) -> TrainingLog:
        """Write one log row per ``(auth_id, topic, date)``; repeats overwrite it."""
        stmt = select(TrainingLog).where(
            TrainingLog.auth_id == auth_id,
            TrainingLog.topic == topic,
            TrainingLog.log_date == log_date,
        )
        entry = await self.session.scalar(stmt)
        if entry is None:
            entry = TrainingLog(auth_id=auth_id, topic=topic, log_date=log_date)
            self.session.add(entry)
        entry.outcome = outcome
        entry.duration_hours = duration_hours
        entry.notes = notes
        await self.session.flush()
        return entry
