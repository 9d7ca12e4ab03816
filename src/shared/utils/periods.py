"""Year/month helpers shared by the calculators and reporters."""

from calendar import monthrange
from datetime import date, timedelta
from typing import NamedTuple


class BillingPeriod(NamedTuple):
    """A (year, month) pair: the unit of reconciliation and aggregation."""

    year: int
    month: int

    @property
    def key(self) -> str:
        return period_key(self.year, self.month)

    @property
    def first_day(self) -> date:
        return month_bounds(self.year, self.month)[0]

    @property
    def last_day(self) -> date:
        return month_bounds(self.year, self.month)[1]


def period_key(year: int, month: int) -> str:
    """"YYYY-MM" key, comparable as a string."""
    return f"{year}-{month:02d}"


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of the month."""
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def shift_month(year: int, month: int, delta: int) -> BillingPeriod:
    """Move a (year, month) by delta months, rolling the year as needed."""
    index = year * 12 + (month - 1) + delta
    return BillingPeriod(index // 12, index % 12 + 1)


def end_of_next_month(d: date) -> date:
    nxt = shift_month(d.year, d.month, 1)
    return month_bounds(nxt.year, nxt.month)[1]


def trailing_periods(year: int, months: int) -> list[BillingPeriod]:
    """`months` periods ending at December of `year`, oldest first."""
    return [shift_month(year, 12, -i) for i in range(months - 1, -1, -1)]


def periods_ending_at(year: int, month: int, months: int) -> list[BillingPeriod]:
    """`months` periods ending at (year, month) inclusive, oldest first."""
    return [shift_month(year, month, -i) for i in range(months - 1, -1, -1)]


def overlaps_month(start: date, end: date, year: int, month: int) -> bool:
    """True when [start, end] shares at least one day with the month."""
    first, last = month_bounds(year, month)
    return start <= last and end >= first


def day_before(d: date) -> date:
    return d - timedelta(days=1)
