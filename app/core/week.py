"""ISO-8601 week helpers.

Weeks start on Monday and week 1 is the week holding the year's first Thursday,
so the ISO week-year can differ from the calendar year near January 1st
(e.g. Monday 2025-12-29 is week 1 of 2026).
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple


@dataclass(frozen=True, order=True)
class WeekInfo:
    # Field order matters: ordering compares (year, week_number).
    year: int
    week_number: int

    def as_dict(self) -> dict:
        return {"week_number": self.week_number, "year": self.year}


def _utc_date(now: datetime) -> date:
    if now.tzinfo is None:
        # Naive datetimes are taken as UTC.
        return now.date()
    return now.astimezone(timezone.utc).date()


def week_of(day: date) -> WeekInfo:
    iso_year, iso_week, _ = day.isocalendar()
    return WeekInfo(year=iso_year, week_number=iso_week)


def current_week_info(now: Optional[datetime] = None) -> WeekInfo:
    """Return the ISO week and week-year of ``now`` (defaults to the wall clock), on its UTC date."""
    if now is None:
        now = datetime.now(timezone.utc)
    return week_of(_utc_date(now))


def weeks_in_year(year: int) -> int:
    # December 28th always falls in the last ISO week of its year.
    return date(year, 12, 28).isocalendar()[1]


def is_valid_week(week_number: int, year: int) -> bool:
    return 1 <= week_number <= weeks_in_year(year)


def week_bounds(week_number: int, year: int) -> Tuple[date, date]:
    """Monday and Sunday of the given ISO week."""
    monday = date.fromisocalendar(year, week_number, 1)
    return monday, monday + timedelta(days=6)


def shift_week(week_number: int, year: int, delta: int) -> WeekInfo:
    """Move ``delta`` weeks forward (or back when negative), crossing year boundaries."""
    monday, _ = week_bounds(week_number, year)
    return week_of(monday + timedelta(weeks=delta))


def is_past_week(week_number: int, year: int, current: WeekInfo) -> bool:
    return WeekInfo(year=year, week_number=week_number) < current
