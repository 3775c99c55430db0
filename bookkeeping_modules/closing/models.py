"""
Year-end closing result types.

All amounts are Decimal. ``ClosingBalance`` carries both the raw balance
(positive = debit side) and the display balance (positive on the
account's normal side); carry-forward balances are raw, in
``OpeningBalance`` form.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from bookkeeping_kernel.domain.results import Issue, IssueCarrier
from bookkeeping_kernel.models.account import AccountType
from bookkeeping_kernel.models.fiscal_year import FiscalYear
from bookkeeping_kernel.models.opening_balance import OpeningBalance, OpeningBalanceSet

ZERO = Decimal("0")


@dataclass(frozen=True)
class ClosingBalance:
    """Balance of one balance-sheet account after the profit roll-in."""

    account_id: str
    account_code: str
    account_name: str
    account_type: AccountType
    raw_balance: Decimal
    display_balance: Decimal


@dataclass(frozen=True)
class ClosingTransfer:
    """
    Transfer of net income to retained earnings.

    A profit credits retained earnings, a loss debits it. The other side is
    the income summary, which has no account of its own, so that side's
    id is None.
    """

    debit_account_id: str | None
    credit_account_id: str | None
    amount: Decimal
    description: str

    @property
    def is_profit(self) -> bool:
        return self.credit_account_id is not None


@dataclass(frozen=True)
class YearEndClosingResult(IssueCarrier):
    fiscal_year: FiscalYear
    net_profit: Decimal
    closing_balances: tuple[ClosingBalance, ...]
    closing_transfer: ClosingTransfer | None
    carry_forward_balances: tuple[OpeningBalance, ...]
    next_fiscal_year_start: date
    retained_earnings_account_id: str | None = None
    issues: tuple[Issue, ...] = ()

    @property
    def next_opening_balances(self) -> OpeningBalanceSet:
        """Ready-to-commit opening balances for the next fiscal year."""
        return OpeningBalanceSet(
            fiscal_year_start=self.next_fiscal_year_start,
            balances=self.carry_forward_balances,
        )

    @property
    def carry_forward_total(self) -> Decimal:
        """Sum of raw carry-forward amounts; zero when the books close cleanly."""
        return sum((b.amount for b in self.carry_forward_balances), ZERO)

    def closing_balance_for(self, account_id: str) -> ClosingBalance | None:
        for balance in self.closing_balances:
            if balance.account_id == account_id:
                return balance
        return None
