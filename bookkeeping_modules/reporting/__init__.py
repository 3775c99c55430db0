"""
Financial Reporting Module (``bookkeeping_modules.reporting``).

Responsibility
--------------
Read-only module that turns ledger snapshots into reports: trial
balance, income statement, balance sheet, indirect-method cash flow
statement, financial indicators and the monthly trend.

Architecture position
---------------------
**Modules layer** -- pure functions over ``LedgerSnapshot`` values from
``bookkeeping_engines.aggregation``. No report creates journal entries.

Invariants enforced
-------------------
* Trial balance: balanced iff total debits == total credits (exact).
* Balance sheet: balanced iff assets == liabilities + equity, where
  equity includes current-period net income.
* Cash flow: total == ending cash - beginning cash
  == operating + investing + financing.

Failure modes
-------------
* A snapshot refused for validation errors -> empty report carrying the
  errors.
* Period with no entries -> all-zero, trivially balanced report.
"""

from bookkeeping_modules.reporting.cash_flow import (
    CashFlowBucket,
    build_cash_flow_statement,
    classify_account,
    reconcile_cash_flow,
)
from bookkeeping_modules.reporting.config import ReportingConfig
from bookkeeping_modules.reporting.indicators import (
    RATING_THRESHOLDS,
    calculate_financial_indicators,
    evaluate_indicator,
)
from bookkeeping_modules.reporting.models import (
    BalanceSheetReport,
    CashFlowStatementReport,
    FinancialIndicators,
    FinancingActivities,
    IncomeStatementReport,
    IndicatorRating,
    IndicatorValue,
    InvestingActivities,
    MonthlyTrendPoint,
    MonthlyTrendReport,
    OperatingActivities,
    ReportMetadata,
    ReportType,
    StatementLine,
    StatementSection,
    TrialBalanceLineItem,
    TrialBalanceReport,
    TrialBalanceSection,
)
from bookkeeping_modules.reporting.statements import (
    build_balance_sheet,
    build_income_statement,
    build_trial_balance,
    compute_net_income,
    default_report_window,
    render_to_dict,
)
from bookkeeping_modules.reporting.trend import build_monthly_trend

__all__ = [
    # Config
    "ReportingConfig",
    # Builders
    "build_trial_balance",
    "build_income_statement",
    "build_balance_sheet",
    "build_cash_flow_statement",
    "reconcile_cash_flow",
    "calculate_financial_indicators",
    "build_monthly_trend",
    "compute_net_income",
    "default_report_window",
    "render_to_dict",
    "classify_account",
    "evaluate_indicator",
    "RATING_THRESHOLDS",
    "CashFlowBucket",
    # Models
    "ReportType",
    "ReportMetadata",
    "TrialBalanceLineItem",
    "TrialBalanceSection",
    "TrialBalanceReport",
    "StatementLine",
    "StatementSection",
    "IncomeStatementReport",
    "BalanceSheetReport",
    "OperatingActivities",
    "InvestingActivities",
    "FinancingActivities",
    "CashFlowStatementReport",
    "IndicatorRating",
    "IndicatorValue",
    "FinancialIndicators",
    "MonthlyTrendPoint",
    "MonthlyTrendReport",
]
