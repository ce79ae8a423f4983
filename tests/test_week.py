from datetime import date, datetime, timedelta, timezone

import pytest

from app.core.week import (
    WeekInfo,
    current_week_info,
    is_past_week,
    is_valid_week,
    shift_week,
    week_bounds,
    weeks_in_year,
)


@pytest.mark.parametrize(
    "now, expected",
    [
        (datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc), WeekInfo(year=2025, week_number=1)),
        (datetime(2025, 1, 5, 23, 0, tzinfo=timezone.utc), WeekInfo(year=2025, week_number=1)),
        (datetime(2025, 1, 6, 0, 0, tzinfo=timezone.utc), WeekInfo(year=2025, week_number=2)),
        (datetime(2025, 12, 29, 12, 0, tzinfo=timezone.utc), WeekInfo(year=2026, week_number=1)),
        (datetime(2021, 1, 1, 12, 0, tzinfo=timezone.utc), WeekInfo(year=2020, week_number=53)),
    ],
)
def test_current_week_info_iso_rules(now: datetime, expected: WeekInfo) -> None:
    assert current_week_info(now) == expected


def test_current_week_info_uses_utc_date() -> None:
    # Monday 00:30 in Jakarta is still Sunday in UTC.
    jakarta = timezone(timedelta(hours=7))
    now = datetime(2025, 1, 6, 0, 30, tzinfo=jakarta)
    assert current_week_info(now) == WeekInfo(year=2025, week_number=1)


def test_current_week_info_is_deterministic() -> None:
    now = datetime(2025, 6, 15, 10, 0, tzinfo=timezone.utc)
    assert current_week_info(now) == current_week_info(now)


def test_naive_datetime_is_treated_as_utc() -> None:
    assert current_week_info(datetime(2025, 12, 29)) == WeekInfo(year=2026, week_number=1)


def test_weeks_in_year() -> None:
    assert weeks_in_year(2020) == 53
    assert weeks_in_year(2025) == 52
    assert weeks_in_year(2026) == 53
    assert is_valid_week(53, 2026)
    assert not is_valid_week(53, 2025)
    assert not is_valid_week(0, 2025)


def test_week_bounds_monday_to_sunday() -> None:
    monday, sunday = week_bounds(1, 2026)
    assert monday == date(2025, 12, 29)
    assert sunday == date(2026, 1, 4)
    assert monday.isoweekday() == 1
    assert sunday.isoweekday() == 7


def test_shift_week_crosses_year_boundary() -> None:
    assert shift_week(1, 2026, -1) == WeekInfo(year=2025, week_number=52)
    assert shift_week(52, 2025, 1) == WeekInfo(year=2026, week_number=1)
    assert shift_week(53, 2020, 1) == WeekInfo(year=2021, week_number=1)
    assert shift_week(10, 2025, 0) == WeekInfo(year=2025, week_number=10)


def test_is_past_week_orders_by_year_then_week() -> None:
    current = WeekInfo(year=2026, week_number=1)
    assert is_past_week(52, 2025, current)
    assert not is_past_week(1, 2026, current)
    assert not is_past_week(2, 2026, current)
