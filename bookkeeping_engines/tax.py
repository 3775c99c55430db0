"""
Tax Engine - Consumption tax at the supported rates (0 %, 8 %, 10 %).

Pure functions with no I/O. Amounts are whole currency units; every
rounding step truncates toward zero.

    included: base = trunc(amount / (1 + rate/100)), tax = amount - base
    excluded: tax = trunc(amount * rate/100), total = amount + tax
    rate 0:   identity (base = total = amount, tax = 0)

Usage:
    from bookkeeping_engines.tax import calculate_tax
    from bookkeeping_kernel.models.journal import TaxInclusion
    from decimal import Decimal

    result = calculate_tax(Decimal("1100"), 10, TaxInclusion.INCLUDED)
    print(result.calculation.base_amount)  # 1000
    print(result.calculation.tax_amount)   # 100
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_DOWN, Decimal
from typing import Any

from bookkeeping_kernel.domain.results import Issue, IssueCarrier
from bookkeeping_kernel.domain.validation import (
    check_money,
    check_tax_inclusion,
    check_tax_rate,
    validate_entries,
)
from bookkeeping_kernel.logging_config import get_logger
from bookkeeping_kernel.models.journal import JournalEntry, TaxInclusion, TaxType
from bookkeeping_engines.aggregation import in_period
from bookkeeping_engines.tracer import traced_engine

logger = get_logger("engines.tax")

ZERO = Decimal("0")
_UNIT = Decimal("1")
_HUNDRED = Decimal("100")


def _truncate(value: Decimal) -> Decimal:
    return value.quantize(_UNIT, rounding=ROUND_DOWN)


@dataclass(frozen=True)
class TaxCalculation:
    """Base, tax and total for one amount at one rate."""

    base_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    tax_rate: int


@dataclass(frozen=True)
class TaxCalculationResult(IssueCarrier):
    calculation: TaxCalculation | None
    issues: tuple[Issue, ...] = ()


class TaxCalculator:
    """
    Consumption tax calculator.

    Validates inputs and returns a result value; never raises for bad
    input.
    """

    def calculate(
        self,
        amount: Any,
        rate: Any,
        mode: Any = TaxInclusion.INCLUDED,
    ) -> TaxCalculationResult:
        t0 = time.monotonic()
        issues = [
            i
            for i in (
                check_money(amount, "amount"),
                check_tax_rate(rate, "rate"),
                check_tax_inclusion(mode, "mode"),
            )
            if i is not None
        ]
        if issues:
            logger.warning(
                "tax_calculation_refused",
                extra={"codes": [i.code for i in issues]},
            )
            return TaxCalculationResult(calculation=None, issues=tuple(issues))

        calc = self._calculate(Decimal(amount), int(rate), TaxInclusion(mode))
        logger.debug(
            "tax_calculation_completed",
            extra={
                "rate": calc.tax_rate,
                "mode": TaxInclusion(mode).value,
                "base_amount": str(calc.base_amount),
                "tax_amount": str(calc.tax_amount),
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            },
        )
        return TaxCalculationResult(calculation=calc)

    def _calculate(self, amount: Decimal, rate: int, mode: TaxInclusion) -> TaxCalculation:
        if rate == 0:
            return TaxCalculation(amount, ZERO, amount, 0)
        if mode == TaxInclusion.INCLUDED:
            base = extract_base_amount(amount, rate)
            return TaxCalculation(base, amount - base, amount, rate)
        tax = calculate_tax_amount(amount, rate)
        return TaxCalculation(amount, tax, amount + tax, rate)


_default_calculator = TaxCalculator()


@traced_engine("tax", "1.0", fingerprint_fields=("amount", "rate", "mode"))
def calculate_tax(
    amount: Any,
    rate: Any,
    mode: Any = TaxInclusion.INCLUDED,
) -> TaxCalculationResult:
    """(amount, rate, mode) -> base/tax/total. See module docstring."""
    return _default_calculator.calculate(amount, rate, mode)


def extract_base_amount(total_amount: Decimal, rate: int) -> Decimal:
    """Tax-exclusive base of a tax-inclusive total."""
    if rate == 0:
        return Decimal(total_amount)
    return _truncate(Decimal(total_amount) * _HUNDRED / (_HUNDRED + rate))


def calculate_total_amount(base_amount: Decimal, rate: int) -> Decimal:
    """Tax-inclusive total of a tax-exclusive base."""
    return Decimal(base_amount) + calculate_tax_amount(base_amount, rate)


def calculate_tax_amount(base_amount: Decimal, rate: int) -> Decimal:
    """Tax on a tax-exclusive base."""
    if rate == 0:
        return ZERO
    return _truncate(Decimal(base_amount) * rate / _HUNDRED)


# =============================================================================
# Period tax summary
# =============================================================================


@dataclass(frozen=True)
class TaxSummary(IssueCarrier):
    """Consumption tax collected on sales and paid on purchases."""

    period_start: date | None
    period_end: date | None
    taxable_sales_10: Decimal = ZERO
    taxable_sales_8: Decimal = ZERO
    sales_tax_10: Decimal = ZERO
    sales_tax_8: Decimal = ZERO
    taxable_purchase_10: Decimal = ZERO
    taxable_purchase_8: Decimal = ZERO
    purchase_tax_10: Decimal = ZERO
    purchase_tax_8: Decimal = ZERO
    entry_count: int = 0
    issues: tuple[Issue, ...] = ()

    @property
    def sales_tax_total(self) -> Decimal:
        return self.sales_tax_10 + self.sales_tax_8

    @property
    def purchase_tax_total(self) -> Decimal:
        return self.purchase_tax_10 + self.purchase_tax_8

    @property
    def net_tax(self) -> Decimal:
        """Tax payable (negative means refundable)."""
        return self.sales_tax_total - self.purchase_tax_total


@traced_engine(
    "tax_summary",
    "1.0",
    fingerprint_fields=("entries", "period_start", "period_end"),
)
def summarize_tax(
    entries: Sequence[JournalEntry],
    period_start: date | None = None,
    period_end: date | None = None,
) -> TaxSummary:
    """Per-rate taxable base and tax for taxable sales and purchases.

    Entries without a tax type, tax-exempt, out-of-scope or zero-rated
    entries are skipped. A missing inclusion mode means ``included``.
    """
    entries = [e for e in entries if in_period(e.date, period_start, period_end)]
    validation = validate_entries(entries)
    if any(i.is_error for i in validation):
        return TaxSummary(period_start, period_end, issues=validation)

    totals = {
        (TaxType.TAXABLE_SALES, 10): [ZERO, ZERO],
        (TaxType.TAXABLE_SALES, 8): [ZERO, ZERO],
        (TaxType.TAXABLE_PURCHASE, 10): [ZERO, ZERO],
        (TaxType.TAXABLE_PURCHASE, 8): [ZERO, ZERO],
    }
    counted = 0
    for entry in entries:
        if entry.tax_type is None or not entry.tax_rate:
            continue
        key = (TaxType(entry.tax_type), int(entry.tax_rate))
        if key not in totals:
            continue
        mode = TaxInclusion(entry.tax_inclusion or TaxInclusion.INCLUDED)
        calc = _default_calculator._calculate(Decimal(entry.amount), key[1], mode)
        totals[key][0] += calc.base_amount
        totals[key][1] += calc.tax_amount
        counted += 1

    summary = TaxSummary(
        period_start=period_start,
        period_end=period_end,
        taxable_sales_10=totals[(TaxType.TAXABLE_SALES, 10)][0],
        sales_tax_10=totals[(TaxType.TAXABLE_SALES, 10)][1],
        taxable_sales_8=totals[(TaxType.TAXABLE_SALES, 8)][0],
        sales_tax_8=totals[(TaxType.TAXABLE_SALES, 8)][1],
        taxable_purchase_10=totals[(TaxType.TAXABLE_PURCHASE, 10)][0],
        purchase_tax_10=totals[(TaxType.TAXABLE_PURCHASE, 10)][1],
        taxable_purchase_8=totals[(TaxType.TAXABLE_PURCHASE, 8)][0],
        purchase_tax_8=totals[(TaxType.TAXABLE_PURCHASE, 8)][1],
        entry_count=counted,
        issues=validation,
    )
    logger.info(
        "tax_summary_computed",
        extra={
            "entry_count": counted,
            "sales_tax_total": str(summary.sales_tax_total),
            "purchase_tax_total": str(summary.purchase_tax_total),
            "net_tax": str(summary.net_tax),
        },
    )
    return summary
