"""
Financial indicator calculator.

Pure function of a ledger snapshot. Profit figures and balances use display
balances; ratios are unrounded ``Decimal`` values and each carries a rating
from a fixed threshold table.

    gross_profit      = revenue - cost of sales
    operating_profit  = gross_profit - other expenses
    net_profit        = operating_profit (no non-operating items)

Equity is the equity-account balances plus the unclosed net income of the
period, the same figure as the balance sheet's equity section. It is not
the plain sum of equity balances, which is lower by the net income.

Undefined ratios are None: margins when revenue == 0, the current ratio
when current liabilities == 0, equity ratio and asset turnover when total
assets == 0, debt/equity when equity <= 0, receivables turnover when
receivables == 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from bookkeeping_engines.aggregation import AccountTotals, LedgerSnapshot
from bookkeeping_kernel.logging_config import get_logger
from bookkeeping_kernel.models.account import AccountRole, AccountType
from bookkeeping_modules.reporting.config import ReportingConfig
from bookkeeping_modules.reporting.models import (
    FinancialIndicators,
    IndicatorRating,
    IndicatorValue,
    ReportMetadata,
    ReportType,
)
from bookkeeping_modules.reporting.statements import compute_net_income

logger = get_logger("modules.reporting.indicators")

ZERO = Decimal("0")
HUNDRED = Decimal("100")

CURRENT_ASSET_ROLES = frozenset(
    {
        AccountRole.CASH,
        AccountRole.RECEIVABLE,
        AccountRole.INVENTORY,
        AccountRole.OTHER_CURRENT_ASSET,
    }
)
CURRENT_LIABILITY_ROLES = frozenset(
    {
        AccountRole.PAYABLE,
        AccountRole.OTHER_CURRENT_LIABILITY,
        AccountRole.SHORT_TERM_BORROWING,
    }
)


@dataclass(frozen=True)
class RatingThreshold:
    """Good/normal cut-offs. ``higher_is_better`` picks the comparison."""

    good: Decimal
    normal: Decimal
    unit: str
    higher_is_better: bool = True

    def rate(self, value: Decimal | None) -> IndicatorRating | None:
        if value is None:
            return None
        if self.higher_is_better:
            if value >= self.good:
                return IndicatorRating.GOOD
            if value >= self.normal:
                return IndicatorRating.NORMAL
            return IndicatorRating.WARNING
        if value <= self.good:
            return IndicatorRating.GOOD
        if value <= self.normal:
            return IndicatorRating.NORMAL
        return IndicatorRating.WARNING


RATING_THRESHOLDS: dict[str, RatingThreshold] = {
    "gross_profit_margin": RatingThreshold(Decimal("30"), Decimal("15"), "%"),
    "operating_profit_margin": RatingThreshold(Decimal("10"), Decimal("5"), "%"),
    "net_profit_margin": RatingThreshold(Decimal("5"), Decimal("2"), "%"),
    "current_ratio": RatingThreshold(Decimal("200"), Decimal("100"), "%"),
    "equity_ratio": RatingThreshold(Decimal("40"), Decimal("20"), "%"),
    "debt_equity_ratio": RatingThreshold(
        Decimal("100"), Decimal("200"), "%", higher_is_better=False
    ),
    "total_asset_turnover": RatingThreshold(Decimal("1.5"), Decimal("0.8"), "times"),
    "receivables_turnover": RatingThreshold(Decimal("12"), Decimal("6"), "times"),
}


def evaluate_indicator(key: str, value: Decimal | None) -> IndicatorRating | None:
    """Rate a ratio; unknown keys rate NORMAL."""
    if value is None:
        return None
    threshold = RATING_THRESHOLDS.get(key)
    if threshold is None:
        return IndicatorRating.NORMAL
    return threshold.rate(value)


def _indicator(key: str, value: Decimal | None) -> IndicatorValue:
    return IndicatorValue(
        key=key,
        value=value,
        rating=evaluate_indicator(key, value),
        unit=RATING_THRESHOLDS[key].unit,
    )


def _ratio(
    numerator: Decimal,
    denominator: Decimal,
    scale: Decimal = Decimal("1"),
) -> Decimal | None:
    if denominator == 0:
        return None
    return numerator / denominator * scale


def _sum(rows) -> Decimal:
    return sum((r.display_balance for r in rows), ZERO)


def _is_cost_of_sales(row: AccountTotals, config: ReportingConfig) -> bool:
    if row.role == AccountRole.COST_OF_SALES:
        return True
    return row.role is None and config.cost_of_sales_pattern.matches(row.name)


def calculate_financial_indicators(
    snapshot: LedgerSnapshot,
    config: ReportingConfig | None = None,
) -> FinancialIndicators:
    """Profitability, safety and efficiency ratios of one snapshot.

    ``equity`` includes unclosed net income, not only equity-account
    balances, so the equity and debt/equity ratios use that figure.
    """
    config = config or ReportingConfig()

    revenue = _sum(snapshot.by_type(AccountType.REVENUE))
    expense_rows = snapshot.by_type(AccountType.EXPENSE)
    cost_of_sales = _sum(r for r in expense_rows if _is_cost_of_sales(r, config))
    operating_expenses = _sum(r for r in expense_rows if not _is_cost_of_sales(r, config))
    gross_profit = revenue - cost_of_sales
    operating_profit = gross_profit - operating_expenses
    net_profit = operating_profit

    asset_rows = [r for r in snapshot.rows if r.account_type == AccountType.ASSET]
    total_assets = _sum(asset_rows)
    current_assets = _sum(r for r in asset_rows if r.role in CURRENT_ASSET_ROLES)
    receivables = _sum(r for r in asset_rows if r.role == AccountRole.RECEIVABLE)
    liability_rows = snapshot.by_type(AccountType.LIABILITY)
    total_liabilities = _sum(liability_rows)
    current_liabilities = _sum(
        r for r in liability_rows if r.role in CURRENT_LIABILITY_ROLES
    )
    equity = _sum(snapshot.by_type(AccountType.EQUITY)) + compute_net_income(snapshot)

    debt_equity = None
    if equity > 0:
        debt_equity = total_liabilities / equity * HUNDRED

    result = FinancialIndicators(
        metadata=ReportMetadata(
            report_type=ReportType.FINANCIAL_INDICATORS,
            entity_name=config.entity_name,
            period_start=snapshot.period_start,
            period_end=snapshot.period_end,
        ),
        revenue=revenue,
        cost_of_sales=cost_of_sales,
        gross_profit=gross_profit,
        operating_profit=operating_profit,
        net_profit=net_profit,
        total_assets=total_assets,
        current_assets=current_assets,
        total_liabilities=total_liabilities,
        current_liabilities=current_liabilities,
        equity=equity,
        receivables=receivables,
        gross_profit_margin=_indicator(
            "gross_profit_margin", _ratio(gross_profit, revenue, HUNDRED)
        ),
        operating_profit_margin=_indicator(
            "operating_profit_margin", _ratio(operating_profit, revenue, HUNDRED)
        ),
        net_profit_margin=_indicator(
            "net_profit_margin", _ratio(net_profit, revenue, HUNDRED)
        ),
        current_ratio=_indicator(
            "current_ratio", _ratio(current_assets, current_liabilities, HUNDRED)
        ),
        equity_ratio=_indicator("equity_ratio", _ratio(equity, total_assets, HUNDRED)),
        debt_equity_ratio=_indicator("debt_equity_ratio", debt_equity),
        total_asset_turnover=_indicator(
            "total_asset_turnover", _ratio(revenue, total_assets)
        ),
        receivables_turnover=_indicator(
            "receivables_turnover", _ratio(revenue, receivables)
        ),
        issues=snapshot.issues,
    )
    logger.info(
        "financial_indicators_calculated",
        extra={
            "revenue": str(revenue),
            "net_profit": str(net_profit),
            "undefined_ratios": [r.key for r in result.ratios if r.value is None],
        },
    )
    return result
