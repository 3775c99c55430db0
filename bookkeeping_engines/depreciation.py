"""
Depreciation Engine (``bookkeeping_engines.depreciation``).

Responsibility
--------------
Compute a fiscal-year depreciation schedule for one fixed asset under the
straight-line or declining-balance method, and answer book-value queries
against that schedule.

Architecture position
---------------------
**Engines layer** -- pure calculation. Independent of the ledger: takes an
asset and a fiscal calendar, never entries or balances.

Invariants enforced
-------------------
* All monetary values are ``Decimal``; yearly amounts are rounded to the
  currency unit half-up.
* Depreciation starts on the first day of the month after acquisition, or
  at the fiscal-year start when acquisition predates it.
* Book value never drops below the memorandum value of 1. Straight-line
  additionally stops at the residual value, so once the schedule is long
  enough, total depreciation + residual == acquisition cost.
* A schedule is a pure function of (asset, calendar, horizon, policy).

Failure modes
-------------
* Invalid asset attributes or horizon -> empty schedule carrying
  ``INVALID_ASSET`` / ``INVALID_HORIZON`` validation errors.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from bookkeeping_kernel.domain.results import Issue, IssueCarrier, IssueCode
from bookkeeping_kernel.domain.validation import is_money
from bookkeeping_kernel.logging_config import get_logger
from bookkeeping_kernel.models.fiscal_year import FiscalCalendar, FiscalYear
from bookkeeping_kernel.models.fixed_asset import DepreciationMethod, FixedAsset
from bookkeeping_engines.tracer import traced_engine

logger = get_logger("engines.depreciation")

ZERO = Decimal("0")
MEMORANDUM_VALUE = Decimal("1")
DEFAULT_HORIZON_YEARS = 10
QUERY_HORIZON_YEARS = 50

# ---------------------------------------------------------------------------
# Regulatory rate tables (declining-balance method, keyed by useful life)
# ---------------------------------------------------------------------------

DECLINING_BALANCE_RATES: Mapping[int, Decimal] = {
    2: Decimal("1.000"), 3: Decimal("0.667"), 4: Decimal("0.500"),
    5: Decimal("0.400"), 6: Decimal("0.333"), 7: Decimal("0.286"),
    8: Decimal("0.250"), 9: Decimal("0.222"), 10: Decimal("0.200"),
    11: Decimal("0.182"), 12: Decimal("0.167"), 13: Decimal("0.154"),
    14: Decimal("0.143"), 15: Decimal("0.133"), 16: Decimal("0.125"),
    17: Decimal("0.118"), 18: Decimal("0.111"), 19: Decimal("0.105"),
    20: Decimal("0.100"), 22: Decimal("0.091"), 24: Decimal("0.083"),
    25: Decimal("0.080"), 30: Decimal("0.067"), 33: Decimal("0.061"),
    35: Decimal("0.057"), 38: Decimal("0.053"), 40: Decimal("0.050"),
    45: Decimal("0.044"), 47: Decimal("0.043"), 50: Decimal("0.040"),
}

GUARANTEE_RATES: Mapping[int, Decimal] = {
    2: Decimal("0"), 3: Decimal("0.11089"), 4: Decimal("0.12499"),
    5: Decimal("0.10800"), 6: Decimal("0.09911"), 7: Decimal("0.08680"),
    8: Decimal("0.07909"), 9: Decimal("0.07126"), 10: Decimal("0.06552"),
    11: Decimal("0.05992"), 12: Decimal("0.05566"), 13: Decimal("0.05180"),
    14: Decimal("0.04854"), 15: Decimal("0.04565"), 16: Decimal("0.04294"),
    17: Decimal("0.04038"), 18: Decimal("0.03884"), 19: Decimal("0.03693"),
    20: Decimal("0.03486"),
}

REVISED_RATES: Mapping[int, Decimal] = {
    2: Decimal("0"), 3: Decimal("1.000"), 4: Decimal("1.000"),
    5: Decimal("0.500"), 6: Decimal("0.334"), 7: Decimal("0.334"),
    8: Decimal("0.334"), 9: Decimal("0.250"), 10: Decimal("0.250"),
    11: Decimal("0.200"), 12: Decimal("0.200"), 13: Decimal("0.167"),
    14: Decimal("0.167"), 15: Decimal("0.143"), 16: Decimal("0.143"),
    17: Decimal("0.125"), 18: Decimal("0.112"), 19: Decimal("0.112"),
    20: Decimal("0.100"),
}

FALLBACK_GUARANTEE_RATE = Decimal("0.05")


def declining_balance_rate(useful_life_years: int) -> Decimal:
    """Table rate, falling back to 2 / life for lives not in the table."""
    rate = DECLINING_BALANCE_RATES.get(useful_life_years)
    if rate is None:
        return Decimal(2) / Decimal(useful_life_years)
    return rate


def guarantee_rate(useful_life_years: int) -> Decimal:
    """Table rate, falling back to 0.05."""
    return GUARANTEE_RATES.get(useful_life_years, FALLBACK_GUARANTEE_RATE)


def revised_rate(useful_life_years: int) -> Decimal:
    """Table rate, falling back to 1 / life."""
    rate = REVISED_RATES.get(useful_life_years)
    if rate is None:
        return Decimal(1) / Decimal(useful_life_years)
    return rate


class SwitchPolicy(str, Enum):
    """How the declining-balance guarantee test is applied across years.

    LOCKED: once the normal amount falls below the guarantee amount, the
        book value of that year becomes the revised base and every later
        year depreciates ``revised base x revised rate``.
    RETEST_EACH_YEAR: the guarantee test is repeated every year against the
        current book value.
    """

    LOCKED = "locked"
    RETEST_EACH_YEAR = "retest_each_year"


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def _round_unit(value: Decimal) -> Decimal:
    return value.quantize(MEMORANDUM_VALUE, rounding=ROUND_HALF_UP)


def _first_of_next_month(d: date) -> date:
    if d.month == 12:
        return date(d.year + 1, 1, 1)
    return date(d.year, d.month + 1, 1)


def depreciation_start(acquisition_date: date, year: FiscalYear) -> date:
    """First depreciable day of an asset within (or after) a fiscal year."""
    if acquisition_date < year.start:
        return year.start
    return _first_of_next_month(acquisition_date)


def depreciation_months(
    acquisition_date: date,
    year: FiscalYear,
    disposal_date: date | None = None,
) -> int:
    """
    Depreciable months of an asset within a fiscal year.

    Postconditions:
        - Returns 0 when acquisition is after the year end or disposal is
          before the year start.
        - Otherwise counts calendar months from the depreciation start to
          min(disposal, year end), both inclusive, clamped to [0, 12].
    """
    if acquisition_date > year.end:
        return 0
    start = depreciation_start(acquisition_date, year)
    end = year.end
    if disposal_date is not None:
        if disposal_date < year.start:
            return 0
        end = min(disposal_date, year.end)
    if start > end:
        return 0
    months = (end.year - start.year) * 12 + end.month - start.month + 1
    return min(12, max(0, months))


def months_elapsed(start: date, as_of: date) -> int:
    """Months from start to as_of, counting a started month as a whole one."""
    months = (as_of.year - start.year) * 12 + as_of.month - start.month
    if as_of.day < start.day:
        months -= 1
    return max(0, months + 1)


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DepreciationSlice:
    """One fiscal year of a depreciation schedule."""

    fiscal_year: int
    year_start: date
    year_end: date
    depreciation_start: date
    beginning_book_value: Decimal
    depreciation_amount: Decimal
    accumulated_depreciation: Decimal
    ending_book_value: Decimal
    months: int
    revised_rate_applied: bool = False


@dataclass(frozen=True)
class DepreciationSchedule(IssueCarrier):
    asset_id: str
    method: DepreciationMethod
    residual_value: Decimal
    slices: tuple[DepreciationSlice, ...]
    issues: tuple[Issue, ...] = ()

    def slice_for(self, fiscal_year: int) -> DepreciationSlice | None:
        for s in self.slices:
            if s.fiscal_year == fiscal_year:
                return s
        return None

    @property
    def total_depreciation(self) -> Decimal:
        return sum((s.depreciation_amount for s in self.slices), ZERO)

    def current_year_depreciation(self, fiscal_year: int) -> Decimal:
        """Depreciation charged in the given fiscal year (0 if none)."""
        s = self.slice_for(fiscal_year)
        return s.depreciation_amount if s is not None else ZERO

    def accumulated_depreciation(self, fiscal_year: int) -> Decimal:
        """Accumulated depreciation at the end of the given fiscal year (0 if none)."""
        s = self.slice_for(fiscal_year)
        return s.accumulated_depreciation if s is not None else ZERO

    def book_value_as_of(self, as_of: date) -> Decimal:
        """Book value on a date, pro-rating the current slice by elapsed months."""
        for s in self.slices:
            if s.year_start <= as_of <= s.year_end:
                if s.months == 0 or as_of < s.depreciation_start:
                    return s.beginning_book_value
                elapsed = min(s.months, months_elapsed(s.depreciation_start, as_of))
                partial = _round_unit(s.depreciation_amount / s.months * elapsed)
                return s.beginning_book_value - partial
            if as_of < s.year_start:
                return s.beginning_book_value
        if self.slices:
            return self.slices[-1].ending_book_value
        return self.residual_value


def _validate(asset: FixedAsset, horizon_years: int) -> list[Issue]:
    issues: list[Issue] = []

    def invalid(field: str, message: str) -> None:
        issues.append(
            Issue.validation(
                IssueCode.INVALID_ASSET,
                message,
                field=f"assets[{asset.id}].{field}",
            )
        )

    cost_ok = is_money(asset.acquisition_cost) and asset.acquisition_cost > 0
    if not cost_ok:
        invalid("acquisition_cost", "Acquisition cost must be a positive Decimal")
    life = asset.useful_life_years
    if isinstance(life, bool) or not isinstance(life, int) or life < 1:
        invalid("useful_life_years", "Useful life must be an integer >= 1")
    if not is_money(asset.residual_value) or asset.residual_value < 0:
        invalid("residual_value", "Residual value must be a non-negative Decimal")
    elif cost_ok and asset.residual_value > asset.acquisition_cost:
        invalid("residual_value", "Residual value cannot exceed acquisition cost")
    if not isinstance(asset.acquisition_date, date):
        invalid("acquisition_date", "Acquisition date is required")
    horizon_ok = (
        not isinstance(horizon_years, bool)
        and isinstance(horizon_years, int)
        and horizon_years >= 1
    )
    if not horizon_ok:
        issues.append(
            Issue.validation(
                IssueCode.INVALID_HORIZON,
                f"Horizon must be an integer >= 1, got {horizon_years!r}",
                field="horizon_years",
            )
        )
    return issues


@traced_engine(
    "depreciation",
    "1.0",
    fingerprint_fields=("asset", "calendar", "horizon_years", "switch_policy"),
)
def calculate_depreciation_schedule(
    asset: FixedAsset,
    calendar: FiscalCalendar,
    horizon_years: int = DEFAULT_HORIZON_YEARS,
    switch_policy: SwitchPolicy = SwitchPolicy.LOCKED,
) -> DepreciationSchedule:
    """
    Build the yearly depreciation schedule of one asset.

    Preconditions:
        - ``acquisition_cost`` > 0, ``useful_life_years`` >= 1,
          0 <= ``residual_value`` <= ``acquisition_cost``.
        - ``horizon_years`` >= 1.

    Postconditions:
        - Slices start with the fiscal year containing the acquisition date.
        - Stops when book value reaches the floor, at the disposal year, or
          after ``horizon_years`` iterations.
    """
    issues = _validate(asset, horizon_years)
    if issues:
        logger.warning(
            "depreciation_schedule_refused",
            extra={"asset_id": asset.id, "codes": [i.code for i in issues]},
        )
        return DepreciationSchedule(
            asset.id, asset.method, ZERO, (), tuple(issues)
        )

    cost = Decimal(asset.acquisition_cost)
    residual = Decimal(asset.residual_value)
    life = asset.useful_life_years
    disposal = asset.effective_disposal_date
    method = DepreciationMethod(asset.method)

    if method == DepreciationMethod.STRAIGHT_LINE:
        floor = max(residual, MEMORANDUM_VALUE)
        annual_straight = (cost - residual) / Decimal(life)
    else:
        floor = MEMORANDUM_VALUE
        rate = declining_balance_rate(life)
        guarantee_amount = cost * guarantee_rate(life)
        revised = revised_rate(life)
    revised_base: Decimal | None = None

    slices: list[DepreciationSlice] = []
    year = calendar.year_containing(asset.acquisition_date)
    book_value = cost
    accumulated = ZERO

    for i in range(horizon_years):
        if book_value <= floor:
            break
        if disposal is not None and disposal < year.start:
            break

        months = depreciation_months(asset.acquisition_date, year, disposal)
        if months == 0 and i > 0:
            year = year.next()
            continue

        switched = False
        if method == DepreciationMethod.STRAIGHT_LINE:
            annual = annual_straight
        else:
            normal = book_value * rate
            if switch_policy == SwitchPolicy.LOCKED:
                if revised_base is None and normal < guarantee_amount:
                    revised_base = book_value
                if revised_base is not None:
                    annual = revised_base * revised
                    switched = True
                else:
                    annual = normal
            elif normal < guarantee_amount:
                annual = book_value * revised
                switched = True
            else:
                annual = normal

        amount = _round_unit(annual * months / 12)
        if book_value - amount < floor:
            amount = book_value - floor

        accumulated += amount
        ending = book_value - amount
        slices.append(
            DepreciationSlice(
                fiscal_year=year.label,
                year_start=year.start,
                year_end=year.end,
                depreciation_start=depreciation_start(asset.acquisition_date, year),
                beginning_book_value=book_value,
                depreciation_amount=amount,
                accumulated_depreciation=accumulated,
                ending_book_value=ending,
                months=months,
                revised_rate_applied=switched,
            )
        )
        book_value = ending
        if disposal is not None and disposal <= year.end:
            break
        year = year.next()

    schedule = DepreciationSchedule(
        asset_id=asset.id,
        method=method,
        residual_value=residual,
        slices=tuple(slices),
    )
    logger.info(
        "depreciation_schedule_computed",
        extra={
            "asset_id": asset.id,
            "method": method.value,
            "slice_count": len(slices),
            "total_depreciation": str(schedule.total_depreciation),
            "final_book_value": str(book_value),
        },
    )
    return schedule
