"""U.S. equity market holiday calendar.

Computes the exchange holiday set for a year from rules alone (no lookup
tables, no third-party calendar):

* fixed-date holidays observed on the nearest weekday (Sat -> Fri, Sun -> Mon)
* Nth-weekday holidays found by scanning the month in ascending day order
* Memorial Day found by scanning May backwards from the 31st
* Good Friday, two days before Easter Sunday (Anonymous Gregorian algorithm)

All dates are plain ``datetime.date`` values in the caller's local calendar.
"""

from __future__ import annotations

import calendar
import datetime
import functools
import logging
from typing import Final, NamedTuple

logger = logging.getLogger(__name__)

UNKNOWN_HOLIDAY: Final[str] = "Unknown Holiday"

# datetime.date.weekday() numbering
MONDAY: Final[int] = 0
THURSDAY: Final[int] = 3
SATURDAY: Final[int] = 5
SUNDAY: Final[int] = 6


class MarketHoliday(NamedTuple):
    """An observed market holiday."""

    date: datetime.date
    name: str


def easter_sunday(year: int) -> datetime.date:
    """Easter Sunday for *year* via the Anonymous Gregorian algorithm."""
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = (h + l - 7 * m + 114) % 31 + 1
    return datetime.date(year, month, day)


def observed_date(year: int, month: int, day: int) -> datetime.date:
    """Shift a fixed-date holiday off the weekend: Sat -> Fri, Sun -> Mon."""
    target = datetime.date(year, month, day)
    weekday = target.weekday()
    if weekday == SATURDAY:
        return target - datetime.timedelta(days=1)
    if weekday == SUNDAY:
        return target + datetime.timedelta(days=1)
    return target


def nth_weekday(year: int, month: int, weekday: int, n: int) -> datetime.date:
    """Return the *n*-th *weekday* of the month (1-based), scanning day 1 upward.

    Raises:
        ValueError: If the month has fewer than *n* such weekdays.
    """
    _, days_in_month = calendar.monthrange(year, month)
    count = 0
    for day in range(1, days_in_month + 1):
        candidate = datetime.date(year, month, day)
        if candidate.weekday() == weekday:
            count += 1
            if count == n:
                return candidate
    msg = f"{year}-{month:02d} has no occurrence #{n} of weekday {weekday}"
    raise ValueError(msg)


def last_weekday(year: int, month: int, weekday: int) -> datetime.date:
    """Return the last *weekday* of the month, scanning back from its final day."""
    _, days_in_month = calendar.monthrange(year, month)
    for day in range(days_in_month, 0, -1):
        candidate = datetime.date(year, month, day)
        if candidate.weekday() == weekday:
            return candidate
    msg = f"{year}-{month:02d} has no weekday {weekday}"  # unreachable for real months
    raise ValueError(msg)


@functools.lru_cache(maxsize=32)
def market_holidays(year: int) -> tuple[MarketHoliday, ...]:
    """All observed market holidays for *year*, in calendar order."""
    good_friday = easter_sunday(year) - datetime.timedelta(days=2)
    return (
        MarketHoliday(observed_date(year, 1, 1), "New Year's Day"),
        MarketHoliday(nth_weekday(year, 1, MONDAY, 3), "MLK Day"),
        MarketHoliday(nth_weekday(year, 2, MONDAY, 3), "Presidents Day"),
        MarketHoliday(good_friday, "Good Friday"),
        MarketHoliday(last_weekday(year, 5, MONDAY), "Memorial Day"),
        MarketHoliday(observed_date(year, 6, 19), "Juneteenth"),
        MarketHoliday(observed_date(year, 7, 4), "Independence Day"),
        MarketHoliday(nth_weekday(year, 9, MONDAY, 1), "Labor Day"),
        MarketHoliday(nth_weekday(year, 11, THURSDAY, 4), "Thanksgiving"),
        MarketHoliday(observed_date(year, 12, 25), "Christmas"),
    )


def is_market_holiday(day: datetime.date) -> bool:
    """True if *day* is an observed market holiday."""
    return any(holiday.date == day for holiday in market_holidays(day.year))


def holiday_name(day: datetime.date) -> str:
    """Name of the holiday on *day*, or ``UNKNOWN_HOLIDAY`` if it is not one.

    Callers are expected to check ``is_market_holiday`` first.
    """
    for holiday in market_holidays(day.year):
        if holiday.date == day:
            return holiday.name
    logger.debug("holiday_name() called on non-holiday %s", day)
    return UNKNOWN_HOLIDAY
