"""
Module: bookkeeping_kernel.models.account
Responsibility: Chart-of-accounts value types and the raw/display sign
    convention shared by every report.
Architecture position: Kernel > Models. No imports outside the kernel.

Invariants:
    - display balance = raw for debit-normal types (asset, expense),
      -raw for credit-normal types (liability, equity, revenue).
    - ``Account.role`` is assigned once at creation; engines classify by
      role, never by display name.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


class AccountRole(str, Enum):
    """Functional role of an account, fixed when the account is created."""

    CASH = "cash"
    RECEIVABLE = "receivable"
    INVENTORY = "inventory"
    PAYABLE = "payable"
    FIXED_ASSET = "fixed_asset"
    BORROWING = "borrowing"
    SHORT_TERM_BORROWING = "short_term_borrowing"
    CAPITAL = "capital"
    OTHER_CURRENT_ASSET = "other_current_asset"
    OTHER_CURRENT_LIABILITY = "other_current_liability"
    RETAINED_EARNINGS = "retained_earnings"
    DEPRECIATION_EXPENSE = "depreciation_expense"
    ACCUMULATED_DEPRECIATION = "accumulated_depreciation"
    COST_OF_SALES = "cost_of_sales"


# Fixed presentation order for statements.
TYPE_ORDER: tuple[AccountType, ...] = (
    AccountType.ASSET,
    AccountType.LIABILITY,
    AccountType.EQUITY,
    AccountType.REVENUE,
    AccountType.EXPENSE,
)

BALANCE_SHEET_TYPES = frozenset(
    {AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY}
)
INCOME_STATEMENT_TYPES = frozenset({AccountType.REVENUE, AccountType.EXPENSE})

_DEBIT_NORMAL = frozenset({AccountType.ASSET, AccountType.EXPENSE})

# Label for synthetic rows built from account ids missing from the chart.
UNKNOWN_ACCOUNT_CODE = "???"
UNKNOWN_ACCOUNT_NAME_FORMAT = "不明な科目 ({short_id}...)"


def normal_balance_for(account_type: AccountType) -> NormalBalance:
    if account_type in _DEBIT_NORMAL:
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


def display_balance(account_type: AccountType, raw: Decimal) -> Decimal:
    """Apply the type-dependent sign flip to a raw (debit-positive) balance."""
    if account_type in _DEBIT_NORMAL:
        return raw
    return -raw


@dataclass(frozen=True)
class Account:
    """A single node in the chart of accounts."""

    id: str
    code: str
    name: str
    account_type: AccountType
    role: AccountRole | None = None

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.account_type)

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type in _DEBIT_NORMAL

    @property
    def is_balance_sheet(self) -> bool:
        return self.account_type in BALANCE_SHEET_TYPES


@dataclass(frozen=True)
class SubAccount:
    """Tagging child of an account (customer, vendor, bank branch)."""

    id: str
    parent_account_id: str
    code: str
    name: str
