"""
Year-end closing preview (``bookkeeping_modules.closing.year_end``).

Responsibility
--------------
Compute the candidates for closing one fiscal year: net profit, the
transfer of that profit to retained earnings, the closing balances of
every balance-sheet account and the raw-signed carry-forward set that
becomes the next year's opening balances.

Architecture position
---------------------
**Modules layer** -- runs the ledger aggregator over the fiscal year and
post-processes its rows. Preview only: nothing is committed, so the
function can be re-run any number of times until the caller commits the
returned ``OpeningBalanceSet`` wholesale.

Invariants enforced
-------------------
* net profit = revenue movement - expense movement over the year; a debit
  posting to revenue subtracts, a credit posting to expense subtracts.
* Retained earnings raw balance is adjusted by -net profit.
* Carry-forward holds one raw balance per nonzero balance-sheet account;
  revenue and expense accounts reset to zero.
* With retained earnings present, carry-forward amounts sum to zero.

Failure modes
-------------
* Malformed entries -> empty result carrying the validation errors.
* No retained-earnings account -> ``RETAINED_EARNINGS_NOT_FOUND``
  configuration warning; closing proceeds without rolling profit in.
* Unknown account ids -> their synthetic rows are left out of the
  carry-forward; the aggregator's ``UNKNOWN_ACCOUNT`` warnings are kept.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from bookkeeping_config import get_default_config
from bookkeeping_config.schema import BookkeepingConfig
from bookkeeping_engines.aggregation import OpeningInput, aggregate_ledger
from bookkeeping_kernel.domain.results import Issue, IssueCode, Severity
from bookkeeping_kernel.logging_config import LogContext, get_logger
from bookkeeping_kernel.models.account import (
    BALANCE_SHEET_TYPES,
    INCOME_STATEMENT_TYPES,
    Account,
    AccountRole,
    display_balance,
)
from bookkeeping_kernel.models.fiscal_year import FiscalYear
from bookkeeping_kernel.models.journal import JournalEntry
from bookkeeping_kernel.models.opening_balance import OpeningBalance
from bookkeeping_modules._system_accounts import find_system_account
from bookkeeping_modules.closing.models import (
    ClosingBalance,
    ClosingTransfer,
    YearEndClosingResult,
)

logger = get_logger("modules.closing.year_end")

ZERO = Decimal("0")


def _closing_transfer(
    net_profit: Decimal,
    retained_earnings_id: str,
    fiscal_year: FiscalYear,
    config: BookkeepingConfig,
) -> ClosingTransfer:
    fiscal_year_end = fiscal_year.end.isoformat()
    if net_profit > 0:
        return ClosingTransfer(
            debit_account_id=None,
            credit_account_id=retained_earnings_id,
            amount=net_profit,
            description=config.closing.profit_transfer_format.format(
                fiscal_year_end=fiscal_year_end
            ),
        )
    return ClosingTransfer(
        debit_account_id=retained_earnings_id,
        credit_account_id=None,
        amount=-net_profit,
        description=config.closing.loss_transfer_format.format(
            fiscal_year_end=fiscal_year_end
        ),
    )


def preview_year_end_closing(
    entries: Sequence[JournalEntry],
    accounts: Sequence[Account],
    opening_balances: OpeningInput,
    fiscal_year: FiscalYear,
    config: BookkeepingConfig | None = None,
) -> YearEndClosingResult:
    """
    Preview the closing of ``fiscal_year``.

    ``opening_balances`` are the year's own opening balances. Entries
    outside [fiscal_year.start, fiscal_year.end] are ignored.
    """
    config = config or get_default_config()
    next_start = fiscal_year.next().start

    with LogContext.bind(fiscal_year=str(fiscal_year.label)):
        snapshot = aggregate_ledger(
            entries,
            accounts,
            opening_balances,
            period_start=fiscal_year.start,
            period_end=fiscal_year.end,
            unknown_code=config.unknown_account.code,
            unknown_name_format=config.unknown_account.name_format,
        )
        if not snapshot.ok:
            return YearEndClosingResult(
                fiscal_year=fiscal_year,
                net_profit=ZERO,
                closing_balances=(),
                closing_transfer=None,
                carry_forward_balances=(),
                next_fiscal_year_start=next_start,
                issues=snapshot.issues,
            )

        issues: list[Issue] = list(snapshot.issues)
        net_profit = -sum(
            (
                r.movement
                for r in snapshot.rows
                if r.account_type in INCOME_STATEMENT_TYPES and not r.is_unknown
            ),
            ZERO,
        )

        retained = find_system_account(accounts, AccountRole.RETAINED_EARNINGS, config)
        transfer: ClosingTransfer | None = None
        if retained is None:
            issues.append(
                Issue.configuration(
                    IssueCode.RETAINED_EARNINGS_NOT_FOUND,
                    "No retained earnings account; net income is not rolled forward",
                    severity=Severity.WARNING,
                    details={"net_profit": str(net_profit)},
                )
            )
        elif net_profit != 0:
            transfer = _closing_transfer(net_profit, retained.id, fiscal_year, config)

        closing: list[ClosingBalance] = []
        carry_forward: list[OpeningBalance] = []
        for row in snapshot.rows:
            if row.is_unknown or row.account_type not in BALANCE_SHEET_TYPES:
                continue
            raw = row.raw_balance
            if transfer is not None and row.account_id == retained.id:
                raw -= net_profit
            if raw == 0:
                continue
            closing.append(
                ClosingBalance(
                    account_id=row.account_id,
                    account_code=row.code,
                    account_name=row.name,
                    account_type=row.account_type,
                    raw_balance=raw,
                    display_balance=display_balance(row.account_type, raw),
                )
            )
            carry_forward.append(OpeningBalance(account_id=row.account_id, amount=raw))

        result = YearEndClosingResult(
            fiscal_year=fiscal_year,
            net_profit=net_profit,
            closing_balances=tuple(closing),
            closing_transfer=transfer,
            carry_forward_balances=tuple(carry_forward),
            next_fiscal_year_start=next_start,
            retained_earnings_account_id=retained.id if retained is not None else None,
            issues=tuple(issues),
        )
        logger.info(
            "year_end_closing_previewed",
            extra={
                "net_profit": str(net_profit),
                "carry_forward_count": len(carry_forward),
                "carry_forward_total": str(result.carry_forward_total),
                "profit_rolled_forward": transfer is not None,
                "next_fiscal_year_start": next_start.isoformat(),
            },
        )
        return result
