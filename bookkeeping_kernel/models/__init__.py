"""Immutable bookkeeping value types."""

from bookkeeping_kernel.models.account import (
    Account,
    AccountRole,
    AccountType,
    NormalBalance,
    SubAccount,
    display_balance,
)
from bookkeeping_kernel.models.fiscal_year import FiscalCalendar, FiscalYear
from bookkeeping_kernel.models.fixed_asset import (
    AssetCategory,
    DepreciationMethod,
    FixedAsset,
)
from bookkeeping_kernel.models.journal import (
    JournalEntry,
    TaxInclusion,
    TaxType,
)
from bookkeeping_kernel.models.opening_balance import (
    OpeningBalance,
    OpeningBalanceSet,
)

__all__ = [
    "Account",
    "AccountRole",
    "AccountType",
    "NormalBalance",
    "SubAccount",
    "display_balance",
    "FiscalCalendar",
    "FiscalYear",
    "AssetCategory",
    "DepreciationMethod",
    "FixedAsset",
    "JournalEntry",
    "TaxInclusion",
    "TaxType",
    "OpeningBalance",
    "OpeningBalanceSet",
]
