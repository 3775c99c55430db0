"""
Pure financial statement transformation functions.

These functions transform a ``LedgerSnapshot`` (the ledger aggregator's
output) into structured reports. ZERO I/O. ZERO side effects.

All monetary values are Decimal. All inputs/outputs are frozen dataclasses.

- No clock access: report windows take an explicit as-of date.
- Deterministic: same inputs always produce same outputs.
- A snapshot that refused aggregation (validation errors) yields an empty
  report carrying the same errors.
"""

from __future__ import annotations

import dataclasses
from datetime import date
from decimal import Decimal
from enum import Enum

from bookkeeping_engines.aggregation import AccountTotals, LedgerSnapshot
from bookkeeping_kernel.logging_config import get_logger
from bookkeeping_kernel.models.account import TYPE_ORDER, AccountType
from bookkeeping_kernel.models.fiscal_year import FiscalCalendar, FiscalYear
from bookkeeping_modules.reporting.config import ReportingConfig
from bookkeeping_modules.reporting.models import (
    BalanceSheetReport,
    IncomeStatementReport,
    ReportMetadata,
    ReportType,
    StatementLine,
    StatementSection,
    TrialBalanceLineItem,
    TrialBalanceReport,
    TrialBalanceSection,
)

logger = get_logger("modules.reporting.statements")

ZERO = Decimal("0")


# =========================================================================
# Helpers
# =========================================================================


def _metadata(
    report_type: ReportType,
    snapshot: LedgerSnapshot,
    config: ReportingConfig,
) -> ReportMetadata:
    return ReportMetadata(
        report_type=report_type,
        entity_name=config.entity_name,
        period_start=snapshot.period_start,
        period_end=snapshot.period_end,
    )


def _make_section(name: str, rows: list[AccountTotals]) -> StatementSection:
    """Build a statement section from rows, sorted by code."""
    lines = tuple(
        StatementLine(
            account_id=r.account_id,
            account_code=r.code,
            account_name=r.name,
            amount=r.display_balance,
        )
        for r in sorted(rows, key=lambda r: (r.code, r.account_id))
    )
    return StatementSection(
        name=name,
        lines=lines,
        total=sum((line.amount for line in lines), ZERO),
    )


def compute_net_income(snapshot: LedgerSnapshot) -> Decimal:
    """Total revenue minus total expense, in display terms."""
    revenue = sum((r.display_balance for r in snapshot.by_type(AccountType.REVENUE)), ZERO)
    expense = sum((r.display_balance for r in snapshot.by_type(AccountType.EXPENSE)), ZERO)
    return revenue - expense


def default_report_window(as_of: date, calendar: FiscalCalendar) -> FiscalYear:
    """The fiscal year containing an explicit as-of date."""
    return calendar.year_containing(as_of)


# =========================================================================
# Trial Balance
# =========================================================================


def build_trial_balance(
    snapshot: LedgerSnapshot,
    config: ReportingConfig | None = None,
) -> TrialBalanceReport:
    """
    Trial balance grouped by type in fixed order, sorted by code.

    Rows with no postings and no opening balance are omitted unless
    ``config.include_zero_balances``. Totals always cover every row.
    """
    config = config or ReportingConfig()
    sections: list[TrialBalanceSection] = []
    for account_type in TYPE_ORDER:
        rows = [
            r
            for r in snapshot.rows
            if r.account_type == account_type
            and (r.touched or config.include_zero_balances)
        ]
        rows.sort(key=lambda r: (r.code, r.account_id))
        lines = tuple(
            TrialBalanceLineItem(
                account_id=r.account_id,
                account_code=r.code,
                account_name=r.name,
                account_type=r.account_type,
                debit_total=r.debit_total,
                credit_total=r.credit_total,
                debit_balance=r.debit_balance,
                credit_balance=r.credit_balance,
                display_balance=r.display_balance,
                is_unknown=r.is_unknown,
            )
            for r in rows
        )
        if lines:
            sections.append(TrialBalanceSection(account_type=account_type, lines=lines))

    total_debits = snapshot.total_debits
    total_credits = snapshot.total_credits
    report = TrialBalanceReport(
        metadata=_metadata(ReportType.TRIAL_BALANCE, snapshot, config),
        sections=tuple(sections),
        total_debits=total_debits,
        total_credits=total_credits,
        total_debit_balance=sum((r.debit_balance for r in snapshot.rows), ZERO),
        total_credit_balance=sum((r.credit_balance for r in snapshot.rows), ZERO),
        is_balanced=total_debits == total_credits,
        issues=snapshot.issues,
    )
    logger.info(
        "trial_balance_built",
        extra={
            "line_count": len(report.lines),
            "total_debits": str(total_debits),
            "total_credits": str(total_credits),
            "is_balanced": report.is_balanced,
        },
    )
    if not report.is_balanced:
        logger.warning(
            "trial_balance_out_of_balance",
            extra={"difference": str(total_debits - total_credits)},
        )
    return report


# =========================================================================
# Income Statement
# =========================================================================


def build_income_statement(
    snapshot: LedgerSnapshot,
    config: ReportingConfig | None = None,
) -> IncomeStatementReport:
    """Revenue and expense accounts with a nonzero display balance."""
    config = config or ReportingConfig()
    revenue = _make_section(
        "Revenue",
        [r for r in snapshot.by_type(AccountType.REVENUE) if r.display_balance != 0],
    )
    expenses = _make_section(
        "Expenses",
        [r for r in snapshot.by_type(AccountType.EXPENSE) if r.display_balance != 0],
    )
    report = IncomeStatementReport(
        metadata=_metadata(ReportType.INCOME_STATEMENT, snapshot, config),
        revenue=revenue,
        expenses=expenses,
        total_revenue=revenue.total,
        total_expenses=expenses.total,
        net_income=revenue.total - expenses.total,
        issues=snapshot.issues,
    )
    logger.info(
        "income_statement_built",
        extra={
            "total_revenue": str(report.total_revenue),
            "total_expenses": str(report.total_expenses),
            "net_income": str(report.net_income),
        },
    )
    return report


# =========================================================================
# Balance Sheet
# =========================================================================


def build_balance_sheet(
    snapshot: LedgerSnapshot,
    config: ReportingConfig | None = None,
) -> BalanceSheetReport:
    """
    Asset, liability and equity accounts with a nonzero display balance.

    Unknown-account rows are presented with the assets so the sheet keeps
    balancing. The equity subtotal adds current-period net income.
    """
    config = config or ReportingConfig()
    asset_rows = [
        r for r in snapshot.rows
        if r.account_type == AccountType.ASSET and r.display_balance != 0
    ]
    assets = _make_section("Assets", asset_rows)
    liabilities = _make_section(
        "Liabilities",
        [r for r in snapshot.by_type(AccountType.LIABILITY) if r.display_balance != 0],
    )
    equity = _make_section(
        "Equity",
        [r for r in snapshot.by_type(AccountType.EQUITY) if r.display_balance != 0],
    )

    net_income = compute_net_income(snapshot)
    total_equity = equity.total + net_income
    total_le = liabilities.total + total_equity
    report = BalanceSheetReport(
        metadata=_metadata(ReportType.BALANCE_SHEET, snapshot, config),
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        total_assets=assets.total,
        total_liabilities=liabilities.total,
        net_income=net_income,
        total_equity=total_equity,
        total_liabilities_and_equity=total_le,
        is_balanced=assets.total == total_le,
        issues=snapshot.issues,
    )
    logger.info(
        "balance_sheet_built",
        extra={
            "total_assets": str(report.total_assets),
            "total_liabilities_and_equity": str(total_le),
            "is_balanced": report.is_balanced,
        },
    )
    return report


# =========================================================================
# Rendering
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Decimal -> str (preserving precision)
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, bool)):
        return obj
    return str(obj)
