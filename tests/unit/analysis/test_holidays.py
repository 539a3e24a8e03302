"""Tests for the market holiday calendar.

Covers:
- Easter / Good Friday for known years
- Weekend shifting of fixed-date holidays
- Nth-weekday and last-weekday holidays
- Days around fixed holidays are not flagged
- Holiday name lookup and the unknown fallback
"""

import datetime

import pytest

from Market_Pulse.analysis.holidays import (
    MONDAY,
    UNKNOWN_HOLIDAY,
    easter_sunday,
    holiday_name,
    is_market_holiday,
    last_weekday,
    market_holidays,
    nth_weekday,
    observed_date,
)


class TestEaster:
    """Tests for easter_sunday() and Good Friday."""

    @pytest.mark.parametrize(
        ("year", "expected"),
        [
            (2024, datetime.date(2024, 3, 31)),
            (2025, datetime.date(2025, 4, 20)),
            (2026, datetime.date(2026, 4, 5)),
            (2000, datetime.date(2000, 4, 23)),
        ],
    )
    def test_known_easter_dates(self, year: int, expected: datetime.date) -> None:
        assert easter_sunday(year) == expected

    def test_good_friday_is_two_days_before_easter(self) -> None:
        for year in (2024, 2025):
            names = {h.name: h.date for h in market_holidays(year)}
            assert names["Good Friday"] == easter_sunday(year) - datetime.timedelta(days=2)

    def test_good_friday_2024_is_holiday(self) -> None:
        assert is_market_holiday(datetime.date(2024, 3, 29))
        assert holiday_name(datetime.date(2024, 3, 29)) == "Good Friday"


class TestWeekendShift:
    """Tests for observed_date() and the weekend-shift property."""

    def test_saturday_shifts_to_friday(self) -> None:
        """July 4 2026 is a Saturday; Friday July 3 is observed."""
        assert observed_date(2026, 7, 4) == datetime.date(2026, 7, 3)
        assert is_market_holiday(datetime.date(2026, 7, 3))
        assert not is_market_holiday(datetime.date(2026, 7, 4))

    def test_sunday_shifts_to_monday(self) -> None:
        """Juneteenth 2022 was a Sunday; Monday June 20 was observed."""
        assert observed_date(2022, 6, 19) == datetime.date(2022, 6, 20)
        assert is_market_holiday(datetime.date(2022, 6, 20))
        assert not is_market_holiday(datetime.date(2022, 6, 19))

    def test_christmas_2027_on_saturday(self) -> None:
        assert is_market_holiday(datetime.date(2027, 12, 24))
        assert not is_market_holiday(datetime.date(2027, 12, 25))

    def test_weekday_holiday_unchanged(self) -> None:
        """Christmas 2025 is a Thursday."""
        assert observed_date(2025, 12, 25) == datetime.date(2025, 12, 25)

    def test_saturday_new_year_is_not_pulled_into_prior_year(self) -> None:
        """New Year's 2022 fell on Saturday; Dec 31 2021 was a trading day."""
        assert observed_date(2022, 1, 1) == datetime.date(2021, 12, 31)
        assert not is_market_holiday(datetime.date(2021, 12, 31))
        assert not is_market_holiday(datetime.date(2022, 1, 1))


class TestFixedHolidayNeighbours:
    """Fixed-date holidays are flagged, and the days around them are not."""

    @pytest.mark.parametrize("year", range(2023, 2031))
    def test_neighbours_not_flagged(self, year: int) -> None:
        fixed = {"New Year's Day", "Juneteenth", "Independence Day", "Christmas"}
        holidays = market_holidays(year)
        dates = {h.date for h in holidays}
        for holiday in holidays:
            if holiday.name not in fixed or holiday.date.year != year:
                continue
            assert is_market_holiday(holiday.date)
            for delta in (-1, 1):
                neighbour = holiday.date + datetime.timedelta(days=delta)
                if neighbour not in dates and neighbour.year == year:
                    assert not is_market_holiday(neighbour)


class TestWeekdayRules:
    """Tests for nth_weekday() and last_weekday()."""

    def test_mlk_day_2025(self) -> None:
        """Third Monday of January 2025."""
        assert nth_weekday(2025, 1, MONDAY, 3) == datetime.date(2025, 1, 20)

    def test_thanksgiving_2025(self) -> None:
        names = {h.name: h.date for h in market_holidays(2025)}
        assert names["Thanksgiving"] == datetime.date(2025, 11, 27)

    def test_labor_day_first_monday(self) -> None:
        assert nth_weekday(2025, 9, MONDAY, 1) == datetime.date(2025, 9, 1)

    def test_memorial_day_last_monday(self) -> None:
        assert last_weekday(2025, 5, MONDAY) == datetime.date(2025, 5, 26)
        assert last_weekday(2026, 5, MONDAY) == datetime.date(2026, 5, 25)

    def test_missing_occurrence_raises(self) -> None:
        with pytest.raises(ValueError, match="no occurrence"):
            nth_weekday(2025, 2, MONDAY, 5)


class TestMarketHolidays:
    """Tests for the full holiday set and name lookup."""

    def test_ten_holidays_in_calendar_order(self) -> None:
        holidays = market_holidays(2025)
        assert len(holidays) == 10
        assert [h.date for h in holidays] == sorted(h.date for h in holidays)

    def test_regular_day_is_not_holiday(self, trading_day: datetime.date) -> None:
        assert not is_market_holiday(trading_day)

    def test_unknown_name_for_regular_day(self, trading_day: datetime.date) -> None:
        assert holiday_name(trading_day) == UNKNOWN_HOLIDAY

    def test_names(self) -> None:
        assert holiday_name(datetime.date(2025, 1, 20)) == "MLK Day"
        assert holiday_name(datetime.date(2025, 2, 17)) == "Presidents Day"
        assert holiday_name(datetime.date(2025, 6, 19)) == "Juneteenth"
