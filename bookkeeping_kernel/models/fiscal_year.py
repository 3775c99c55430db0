"""
Module: bookkeeping_kernel.models.fiscal_year
Responsibility: Fiscal calendar arithmetic.

A fiscal year starts on a fixed (month, day) and ends the day before the
next start. A start day that does not exist in a given year (29 February
in a common year) rolls forward to 1 March.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta


def add_years(d: date, years: int) -> date:
    """Shift a date by whole years, rolling 29 Feb to 1 Mar when needed."""
    return _make_date(d.year + years, d.month, d.day)


def _make_date(year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except ValueError:
        # Only 29 Feb can fail once month/day were valid somewhere.
        return date(year, 3, 1)


@dataclass(frozen=True)
class FiscalYear:
    start: date

    @property
    def end(self) -> date:
        return add_years(self.start, 1) - timedelta(days=1)

    @property
    def label(self) -> int:
        return self.start.year

    def next(self) -> FiscalYear:
        return FiscalYear(add_years(self.start, 1))

    def previous(self) -> FiscalYear:
        return FiscalYear(add_years(self.start, -1))

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    @classmethod
    def containing(cls, as_of: date, calendar: FiscalCalendar) -> FiscalYear:
        return calendar.year_containing(as_of)

    def __str__(self) -> str:
        return f"FY{self.label} ({self.start.isoformat()}..{self.end.isoformat()})"


@dataclass(frozen=True)
class FiscalCalendar:
    """Fiscal year start expressed as (month, day)."""

    start_month: int = 1
    start_day: int = 1

    def __post_init__(self) -> None:
        if not 1 <= self.start_month <= 12:
            raise ValueError(f"start_month must be 1..12, got {self.start_month}")
        # Validate against a leap year so 29 Feb is accepted.
        date(2000, self.start_month, self.start_day)

    @classmethod
    def from_start_date(cls, start: date) -> FiscalCalendar:
        return cls(start.month, start.day)

    def year_starting_in(self, label: int) -> FiscalYear:
        return FiscalYear(_make_date(label, self.start_month, self.start_day))

    def year_containing(self, as_of: date) -> FiscalYear:
        fy = self.year_starting_in(as_of.year)
        if as_of < fy.start:
            fy = self.year_starting_in(as_of.year - 1)
        return fy

    def starts_before(self, d: date) -> bool:
        """True if (d.month, d.day) precedes the fiscal start within a year."""
        return (d.month, d.day) < (self.start_month, self.start_day)
