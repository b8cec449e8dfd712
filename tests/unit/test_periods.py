from datetime import UTC, datetime

import pytest
from src.domain.periods import (
    FollowUpPeriod,
    RefreshPeriod,
    add_months,
    follow_up_due,
    refresh_due,
)

START = datetime(2024, 1, 31, tzinfo=UTC)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2 weeks", FollowUpPeriod.TWO_WEEKS),
        ("  1 Week ", FollowUpPeriod.ONE_WEEK),
        ("3  months", FollowUpPeriod.THREE_MONTHS),
        ("0", None),
        ("", None),
        (None, None),
        ("fortnight", None),
    ],
)
def test_follow_up_period_parse(raw, expected) -> None:
    assert FollowUpPeriod.parse(raw) is expected


def test_refresh_period_does_not_accept_follow_up_values() -> None:
    assert RefreshPeriod.parse("2 weeks") is None
    assert RefreshPeriod.parse("2 years") is RefreshPeriod.TWO_YEARS


def test_add_months_clamps_to_month_end() -> None:
    assert add_months(START, 1) == datetime(2024, 2, 29, tzinfo=UTC)
    assert add_months(START, 13) == datetime(2025, 2, 28, tzinfo=UTC)
    assert add_months(datetime(2024, 11, 15, tzinfo=UTC), 3) == datetime(2025, 2, 15, tzinfo=UTC)


def test_follow_up_due_only_when_required() -> None:
    assert follow_up_due(START, requires_follow_up=True, period="2 weeks") == datetime(
        2024, 2, 14, tzinfo=UTC
    )
    assert follow_up_due(START, requires_follow_up=False, period="2 weeks") is None
    assert follow_up_due(START, requires_follow_up=True, period=None) is None


def test_refresh_due() -> None:
    assert refresh_due(START, "1 year") == datetime(2025, 1, 31, tzinfo=UTC)
    assert refresh_due(START, "6 months") == datetime(2024, 7, 31, tzinfo=UTC)
    assert refresh_due(START, "0") is None
