"""
Indirect-method cash flow reconciler.

Responsibility:
    Derive a cash flow statement from two ledger snapshots (beginning and
    ending) plus net profit. Each balance-sheet account falls into exactly
    one bucket, chosen from its role:

        cash, receivable, inventory, payable, fixed_asset, borrowing,
        capital, other_current_asset, other_current_liability, unclassified

    For every non-cash bucket the cash effect is the negated raw-balance
    delta: an asset increase is an outflow, a liability or equity increase
    is an inflow.

Invariants enforced:
    - operating subtotal = actual cash delta - investing - financing.
    - The gap between that residual and the explicit operating lines is
      absorbed into ``other_current_liability_change``.
    - total_cash_flow == ending_cash - beginning_cash
      == operating + investing + financing, for every input.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

from bookkeeping_engines.aggregation import (
    AccountTotals,
    LedgerSnapshot,
    OpeningInput,
    aggregate_ledger,
)
from bookkeeping_kernel.domain.results import Issue
from bookkeeping_kernel.logging_config import get_logger
from bookkeeping_kernel.models.account import (
    BALANCE_SHEET_TYPES,
    INCOME_STATEMENT_TYPES,
    Account,
    AccountRole,
    AccountType,
)
from bookkeeping_kernel.models.journal import JournalEntry
from bookkeeping_modules.reporting.config import ReportingConfig
from bookkeeping_modules.reporting.models import (
    CashFlowStatementReport,
    FinancingActivities,
    InvestingActivities,
    OperatingActivities,
    ReportMetadata,
    ReportType,
)

logger = get_logger("modules.reporting.cash_flow")

ZERO = Decimal("0")


class CashFlowBucket(str, Enum):
    CASH = "cash"
    RECEIVABLE = "receivable"
    INVENTORY = "inventory"
    PAYABLE = "payable"
    FIXED_ASSET = "fixed_asset"
    BORROWING = "borrowing"
    CAPITAL = "capital"
    OTHER_CURRENT_ASSET = "other_current_asset"
    OTHER_CURRENT_LIABILITY = "other_current_liability"
    UNCLASSIFIED = "unclassified"


_ROLE_BUCKETS: dict[AccountRole, CashFlowBucket] = {
    AccountRole.CASH: CashFlowBucket.CASH,
    AccountRole.RECEIVABLE: CashFlowBucket.RECEIVABLE,
    AccountRole.INVENTORY: CashFlowBucket.INVENTORY,
    AccountRole.PAYABLE: CashFlowBucket.PAYABLE,
    AccountRole.FIXED_ASSET: CashFlowBucket.FIXED_ASSET,
    AccountRole.BORROWING: CashFlowBucket.BORROWING,
    AccountRole.SHORT_TERM_BORROWING: CashFlowBucket.BORROWING,
    AccountRole.CAPITAL: CashFlowBucket.CAPITAL,
}


def classify_account(row: AccountTotals) -> CashFlowBucket | None:
    """Bucket of a balance-sheet row; None for revenue/expense rows."""
    if row.is_unknown:
        return CashFlowBucket.UNCLASSIFIED
    if row.account_type not in BALANCE_SHEET_TYPES:
        return None
    if row.role in _ROLE_BUCKETS:
        return _ROLE_BUCKETS[row.role]
    if (
        row.role == AccountRole.OTHER_CURRENT_ASSET
        and row.account_type == AccountType.ASSET
    ):
        return CashFlowBucket.OTHER_CURRENT_ASSET
    if (
        row.role == AccountRole.OTHER_CURRENT_LIABILITY
        and row.account_type == AccountType.LIABILITY
    ):
        return CashFlowBucket.OTHER_CURRENT_LIABILITY
    return CashFlowBucket.UNCLASSIFIED


def _merge_issues(*groups: Iterable[Issue]) -> tuple[Issue, ...]:
    seen: set[tuple[str, str | None, str]] = set()
    out: list[Issue] = []
    for group in groups:
        for issue in group:
            key = (issue.code, issue.field, issue.message)
            if key not in seen:
                seen.add(key)
                out.append(issue)
    return tuple(out)


def build_cash_flow_statement(
    beginning: LedgerSnapshot,
    ending: LedgerSnapshot,
    net_profit: Decimal,
    config: ReportingConfig | None = None,
    period_start: date | None = None,
) -> CashFlowStatementReport:
    """
    Reconcile the cash delta between two snapshots.

    Preconditions:
        Both snapshots were aggregated over the same chart of accounts;
        ``beginning`` reflects the period start and ``ending`` the period
        end.
    """
    config = config or ReportingConfig()
    metadata = ReportMetadata(
        report_type=ReportType.CASH_FLOW,
        entity_name=config.entity_name,
        period_start=period_start,
        period_end=ending.period_end,
    )
    issues = _merge_issues(beginning.issues, ending.issues)
    if not (beginning.ok and ending.ok):
        return CashFlowStatementReport(
            metadata=metadata,
            operating=OperatingActivities(),
            investing=InvestingActivities(),
            financing=FinancingActivities(),
            total_cash_flow=ZERO,
            beginning_cash=ZERO,
            ending_cash=ZERO,
            issues=issues,
        )

    begin_rows = {r.account_id: r for r in beginning.rows}
    end_rows = {r.account_id: r for r in ending.rows}
    account_ids = list(end_rows) + [a for a in begin_rows if a not in end_rows]

    beginning_cash = ZERO
    ending_cash = ZERO
    depreciation = ZERO
    bucket_effect: dict[CashFlowBucket, Decimal] = {b: ZERO for b in CashFlowBucket}
    fixed_asset_purchase = ZERO
    fixed_asset_sale = ZERO
    borrowing = ZERO
    repayment = ZERO
    capital_increase = ZERO
    other_financing = ZERO

    for account_id in account_ids:
        row = end_rows.get(account_id) or begin_rows[account_id]
        begin = begin_rows.get(account_id)
        end = end_rows.get(account_id)
        begin_raw = begin.raw_balance if begin is not None else ZERO
        end_raw = end.raw_balance if end is not None else ZERO

        if row.role == AccountRole.DEPRECIATION_EXPENSE:
            begin_debits = begin.debit_total if begin is not None else ZERO
            end_debits = end.debit_total if end is not None else ZERO
            depreciation += end_debits - begin_debits

        bucket = classify_account(row)
        if bucket is None:
            continue
        if bucket == CashFlowBucket.CASH:
            beginning_cash += begin_raw
            ending_cash += end_raw
            continue

        effect = -(end_raw - begin_raw)
        bucket_effect[bucket] += effect
        if bucket == CashFlowBucket.FIXED_ASSET:
            if effect < 0:
                fixed_asset_purchase += effect
            else:
                fixed_asset_sale += effect
        elif bucket == CashFlowBucket.BORROWING:
            if effect > 0:
                borrowing += effect
            else:
                repayment += effect
        elif bucket == CashFlowBucket.CAPITAL:
            if effect > 0:
                capital_increase += effect
            else:
                other_financing += effect

    investing = InvestingActivities(
        fixed_asset_purchase=fixed_asset_purchase,
        fixed_asset_sale=fixed_asset_sale,
        other_investing=ZERO,
        subtotal=fixed_asset_purchase + fixed_asset_sale,
    )
    financing = FinancingActivities(
        borrowing=borrowing,
        repayment=repayment,
        capital_increase=capital_increase,
        dividends=ZERO,
        other_financing=other_financing,
        subtotal=borrowing + repayment + capital_increase + other_financing,
    )

    actual_cash_change = ending_cash - beginning_cash
    operating_subtotal = actual_cash_change - investing.subtotal - financing.subtotal
    explicit = (
        net_profit
        + depreciation
        + bucket_effect[CashFlowBucket.RECEIVABLE]
        + bucket_effect[CashFlowBucket.INVENTORY]
        + bucket_effect[CashFlowBucket.PAYABLE]
        + bucket_effect[CashFlowBucket.OTHER_CURRENT_ASSET]
        + bucket_effect[CashFlowBucket.OTHER_CURRENT_LIABILITY]
    )
    adjustment = operating_subtotal - explicit
    operating = OperatingActivities(
        net_profit=net_profit,
        depreciation=depreciation,
        receivable_change=bucket_effect[CashFlowBucket.RECEIVABLE],
        inventory_change=bucket_effect[CashFlowBucket.INVENTORY],
        payable_change=bucket_effect[CashFlowBucket.PAYABLE],
        other_current_asset_change=bucket_effect[CashFlowBucket.OTHER_CURRENT_ASSET],
        other_current_liability_change=(
            bucket_effect[CashFlowBucket.OTHER_CURRENT_LIABILITY] + adjustment
        ),
        subtotal=operating_subtotal,
    )

    report = CashFlowStatementReport(
        metadata=metadata,
        operating=operating,
        investing=investing,
        financing=financing,
        total_cash_flow=operating.subtotal + investing.subtotal + financing.subtotal,
        beginning_cash=beginning_cash,
        ending_cash=ending_cash,
        residual_adjustment=adjustment,
        issues=issues,
    )
    logger.info(
        "cash_flow_reconciled",
        extra={
            "operating": str(operating.subtotal),
            "investing": str(investing.subtotal),
            "financing": str(financing.subtotal),
            "total_cash_flow": str(report.total_cash_flow),
            "residual_adjustment": str(adjustment),
            "unclassified_effect": str(bucket_effect[CashFlowBucket.UNCLASSIFIED]),
        },
    )
    return report


def net_profit_between(beginning: LedgerSnapshot, ending: LedgerSnapshot) -> Decimal:
    """Revenue minus expense posted between two snapshots."""
    begin_rows = {r.account_id: r for r in beginning.rows}
    total = ZERO
    for row in ending.rows:
        if row.account_type not in INCOME_STATEMENT_TYPES or row.is_unknown:
            continue
        begin = begin_rows.get(row.account_id)
        begin_raw = begin.raw_balance if begin is not None else ZERO
        total -= row.raw_balance - begin_raw
    return total


def reconcile_cash_flow(
    entries: Sequence[JournalEntry],
    accounts: Sequence[Account],
    opening_balances: OpeningInput = None,
    period_start: date | None = None,
    period_end: date | None = None,
    config: ReportingConfig | None = None,
) -> CashFlowStatementReport:
    """
    Build both snapshots and the net profit, then reconcile.

    The beginning snapshot holds opening balances plus entries dated before
    ``period_start``; the ending snapshot adds entries up to ``period_end``.
    """
    config = config or ReportingConfig()
    label = config.unknown_account_label
    if period_start is None:
        beginning = aggregate_ledger(
            [],
            accounts,
            opening_balances,
            unknown_code=label.code,
            unknown_name_format=label.name_format,
        )
    else:
        beginning = aggregate_ledger(
            entries,
            accounts,
            opening_balances,
            period_end=period_start - timedelta(days=1),
            unknown_code=label.code,
            unknown_name_format=label.name_format,
        )
    ending = aggregate_ledger(
        entries,
        accounts,
        opening_balances,
        period_end=period_end,
        unknown_code=label.code,
        unknown_name_format=label.name_format,
    )
    net_profit = net_profit_between(beginning, ending)
    return build_cash_flow_statement(
        beginning, ending, net_profit, config, period_start=period_start
    )
