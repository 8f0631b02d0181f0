"""U.S. holidays billed entirely at the off-peak rate."""

from datetime import date, timedelta


def _nth_weekday(year: int, month: int, weekday: int, n: int) -> date:
    """The n-th given weekday (Monday=0) of a month."""
    first = date(year, month, 1)
    offset = (weekday - first.weekday()) % 7
    return first + timedelta(days=offset + 7 * (n - 1))


def _last_weekday(year: int, month: int, weekday: int) -> date:
    if month == 12:
        last = date(year, 12, 31)
    else:
        last = date(year, month + 1, 1) - timedelta(days=1)
    return last - timedelta(days=(last.weekday() - weekday) % 7)


def holidays_for_year(year: int) -> dict[date, str]:
    """New Year's Day, Memorial Day, Independence Day, Labor Day, Thanksgiving, Christmas."""
    return {
        date(year, 1, 1): "New Year's Day",
        _last_weekday(year, 5, 0): "Memorial Day",
        date(year, 7, 4): "Independence Day",
        _nth_weekday(year, 9, 0, 1): "Labor Day",
        _nth_weekday(year, 11, 3, 4): "Thanksgiving",
        date(year, 12, 25): "Christmas",
    }


class HolidayCalendar:
    """Holiday lookup, computed once per calendar year and kept for the process lifetime.

    Construct one at startup and pass it to whatever classifies days.
    """

    def __init__(self):
        self._years: dict[int, dict[date, str]] = {}

    def holidays(self, year: int) -> dict[date, str]:
        if year not in self._years:
            self._years[year] = holidays_for_year(year)
        return self._years[year]

    def is_holiday(self, day: date) -> bool:
        return day in self.holidays(day.year)

    def name(self, day: date) -> str | None:
        return self.holidays(day.year).get(day)
