"""Follow-up and refresh cadences for training modules.

Modules store their cadence as free text picked from a fixed list in the
admin UI. These enums are the typed form of that list; each value maps to a
``(weeks, months)`` offset.
"""

from __future__ import annotations

import calendar
import enum
from datetime import datetime, timedelta

import structlog

logger = structlog.get_logger()

_NO_PERIOD = {"", "0", "none"}


class _Period(str, enum.Enum):
    @classmethod
    def parse(cls, value: str | None):
        """Return the member for ``value`` or ``None`` when no cadence applies."""
        if value is None:
            return None
        normalized = " ".join(value.strip().lower().split())
        if normalized in _NO_PERIOD:
            return None
        try:
            return cls(normalized)
        except ValueError:
            logger.warning("training_period_unrecognized", period=value, kind=cls.__name__)
            return None

    def due_from(self, start: datetime) -> datetime:
        weeks, months = _OFFSETS[self]
        return add_months(start, months) + timedelta(weeks=weeks)


class FollowUpPeriod(_Period):
    ONE_WEEK = "1 week"
    TWO_WEEKS = "2 weeks"
    ONE_MONTH = "1 month"
    THREE_MONTHS = "3 months"


class RefreshPeriod(_Period):
    SIX_MONTHS = "6 months"
    ONE_YEAR = "1 year"
    TWO_YEARS = "2 years"
    THREE_YEARS = "3 years"


_OFFSETS: dict[_Period, tuple[int, int]] = {
    FollowUpPeriod.ONE_WEEK: (1, 0),
    FollowUpPeriod.TWO_WEEKS: (2, 0),
    FollowUpPeriod.ONE_MONTH: (0, 1),
    FollowUpPeriod.THREE_MONTHS: (0, 3),
    RefreshPeriod.SIX_MONTHS: (0, 6),
    RefreshPeriod.ONE_YEAR: (0, 12),
    RefreshPeriod.TWO_YEARS: (0, 24),
    RefreshPeriod.THREE_YEARS: (0, 36),
}


def add_months(start: datetime, months: int) -> datetime:
    """Shift ``start`` by whole months, clamping to the target month's last day."""
    if months == 0:
        return start
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def follow_up_due(start: datetime, *, requires_follow_up: bool, period: str | None) -> datetime | None:
    if not requires_follow_up:
        return None
    parsed = FollowUpPeriod.parse(period)
    return parsed.due_from(start) if parsed else None


def refresh_due(start: datetime, period: str | None) -> datetime | None:
    parsed = RefreshPeriod.parse(period)
    return parsed.due_from(start) if parsed else None
