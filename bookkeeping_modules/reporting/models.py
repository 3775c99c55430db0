"""
Financial Reporting Domain Models (``bookkeeping_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects representing report outputs: trial
balance, income statement, balance sheet, cash flow statement, financial
indicators and the monthly trend.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Every report carries ``issues`` (errors and warnings) and exposes
  ``ok`` / ``warnings`` / ``raise_for_errors()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from bookkeeping_kernel.domain.results import Issue, IssueCarrier
from bookkeeping_kernel.models.account import AccountType

ZERO = Decimal("0")


# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    """Types of financial reports."""

    TRIAL_BALANCE = "trial_balance"
    BALANCE_SHEET = "balance_sheet"
    INCOME_STATEMENT = "income_statement"
    CASH_FLOW = "cash_flow"
    FINANCIAL_INDICATORS = "financial_indicators"
    MONTHLY_TREND = "monthly_trend"


class IndicatorRating(str, Enum):
    GOOD = "good"
    NORMAL = "normal"
    WARNING = "warning"


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every financial report."""

    report_type: ReportType
    entity_name: str
    period_start: date | None = None
    period_end: date | None = None


# =========================================================================
# Trial Balance Report
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLineItem:
    """A single line in the trial balance."""

    account_id: str
    account_code: str
    account_name: str
    account_type: AccountType
    debit_total: Decimal
    credit_total: Decimal
    debit_balance: Decimal
    credit_balance: Decimal
    display_balance: Decimal
    is_unknown: bool = False


@dataclass(frozen=True)
class TrialBalanceSection:
    account_type: AccountType
    lines: tuple[TrialBalanceLineItem, ...]


@dataclass(frozen=True)
class TrialBalanceReport(IssueCarrier):
    """Complete trial balance report."""

    metadata: ReportMetadata
    sections: tuple[TrialBalanceSection, ...]
    total_debits: Decimal
    total_credits: Decimal
    total_debit_balance: Decimal
    total_credit_balance: Decimal
    is_balanced: bool  # total_debits == total_credits
    issues: tuple[Issue, ...] = ()

    @property
    def lines(self) -> tuple[TrialBalanceLineItem, ...]:
        return tuple(line for section in self.sections for line in section.lines)

    def line_for(self, account_id: str) -> TrialBalanceLineItem | None:
        for line in self.lines:
            if line.account_id == account_id:
                return line
        return None


# =========================================================================
# Income Statement / Balance Sheet
# =========================================================================


@dataclass(frozen=True)
class StatementLine:
    account_id: str
    account_code: str
    account_name: str
    amount: Decimal  # display balance


@dataclass(frozen=True)
class StatementSection:
    """A titled group of lines with its subtotal."""

    name: str
    lines: tuple[StatementLine, ...]
    total: Decimal


@dataclass(frozen=True)
class IncomeStatementReport(IssueCarrier):
    metadata: ReportMetadata
    revenue: StatementSection
    expenses: StatementSection
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal
    issues: tuple[Issue, ...] = ()


@dataclass(frozen=True)
class BalanceSheetReport(IssueCarrier):
    """Balance sheet; equity subtotal includes current-period net income."""

    metadata: ReportMetadata
    assets: StatementSection
    liabilities: StatementSection
    equity: StatementSection
    total_assets: Decimal
    total_liabilities: Decimal
    net_income: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool
    issues: tuple[Issue, ...] = ()


# =========================================================================
# Cash Flow Statement (indirect method)
# =========================================================================


@dataclass(frozen=True)
class OperatingActivities:
    net_profit: Decimal = ZERO
    depreciation: Decimal = ZERO
    receivable_change: Decimal = ZERO
    inventory_change: Decimal = ZERO
    payable_change: Decimal = ZERO
    other_current_asset_change: Decimal = ZERO
    other_current_liability_change: Decimal = ZERO
    subtotal: Decimal = ZERO


@dataclass(frozen=True)
class InvestingActivities:
    fixed_asset_purchase: Decimal = ZERO
    fixed_asset_sale: Decimal = ZERO
    other_investing: Decimal = ZERO
    subtotal: Decimal = ZERO


@dataclass(frozen=True)
class FinancingActivities:
    borrowing: Decimal = ZERO
    repayment: Decimal = ZERO
    capital_increase: Decimal = ZERO
    dividends: Decimal = ZERO
    other_financing: Decimal = ZERO
    subtotal: Decimal = ZERO


@dataclass(frozen=True)
class CashFlowStatementReport(IssueCarrier):
    """
    Indirect-method cash flow statement.

    total_cash_flow == ending_cash - beginning_cash
                    == operating + investing + financing subtotals.
    """

    metadata: ReportMetadata
    operating: OperatingActivities
    investing: InvestingActivities
    financing: FinancingActivities
    total_cash_flow: Decimal
    beginning_cash: Decimal
    ending_cash: Decimal
    residual_adjustment: Decimal = ZERO
    issues: tuple[Issue, ...] = ()

    @property
    def reconciles(self) -> bool:
        return (
            self.total_cash_flow == self.ending_cash - self.beginning_cash
            and self.total_cash_flow
            == self.operating.subtotal + self.investing.subtotal + self.financing.subtotal
        )


# =========================================================================
# Financial Indicators
# =========================================================================


@dataclass(frozen=True)
class IndicatorValue:
    """A ratio with its rating; ``value`` is None when undefined."""

    key: str
    value: Decimal | None
    rating: IndicatorRating | None
    unit: str  # "%" or "times"


@dataclass(frozen=True)
class FinancialIndicators(IssueCarrier):
    metadata: ReportMetadata
    revenue: Decimal
    cost_of_sales: Decimal
    gross_profit: Decimal
    operating_profit: Decimal
    net_profit: Decimal
    total_assets: Decimal
    current_assets: Decimal
    total_liabilities: Decimal
    current_liabilities: Decimal
    equity: Decimal
    receivables: Decimal
    gross_profit_margin: IndicatorValue
    operating_profit_margin: IndicatorValue
    net_profit_margin: IndicatorValue
    current_ratio: IndicatorValue
    equity_ratio: IndicatorValue
    debt_equity_ratio: IndicatorValue
    total_asset_turnover: IndicatorValue
    receivables_turnover: IndicatorValue
    issues: tuple[Issue, ...] = ()

    @property
    def ratios(self) -> tuple[IndicatorValue, ...]:
        return (
            self.gross_profit_margin,
            self.operating_profit_margin,
            self.net_profit_margin,
            self.current_ratio,
            self.equity_ratio,
            self.debt_equity_ratio,
            self.total_asset_turnover,
            self.receivables_turnover,
        )


# =========================================================================
# Monthly Trend
# =========================================================================


@dataclass(frozen=True)
class AccountMovement:
    account_id: str
    net_movement: Decimal  # debit postings minus credit postings


@dataclass(frozen=True)
class MonthlyTrendPoint:
    year: int
    month: int
    revenue: Decimal
    expense: Decimal
    profit: Decimal
    movements: tuple[AccountMovement, ...] = ()

    def movement_for(self, account_id: str) -> Decimal:
        for m in self.movements:
            if m.account_id == account_id:
                return m.net_movement
        return ZERO


@dataclass(frozen=True)
class MonthlyTrendReport(IssueCarrier):
    metadata: ReportMetadata
    year: int
    months: tuple[MonthlyTrendPoint, ...]
    issues: tuple[Issue, ...] = ()

    @property
    def total_revenue(self) -> Decimal:
        return sum((m.revenue for m in self.months), ZERO)

    @property
    def total_expense(self) -> Decimal:
        return sum((m.expense for m in self.months), ZERO)
