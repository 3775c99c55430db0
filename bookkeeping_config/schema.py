"""
BookkeepingConfig schema.

Human-authored configuration for the bookkeeping core: which account
names identify system accounts, how roles are inferred when accounts are
created, and presentation defaults. YAML documents are parsed into these
frozen types by the loader.

Regulatory depreciation-rate tables and indicator rating thresholds are
NOT configuration; they live as constants next to the code that uses them.
"""

from __future__ import annotations

from dataclasses import dataclass

from bookkeeping_kernel.models.account import (
    UNKNOWN_ACCOUNT_CODE,
    UNKNOWN_ACCOUNT_NAME_FORMAT,
    AccountRole,
    AccountType,
)


def _fold(name: str) -> str:
    return name.strip().casefold()


# ---------------------------------------------------------------------------
# Name patterns
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NamePattern:
    """Matches an account name exactly or by substring (case-insensitive)."""

    exact: tuple[str, ...] = ()
    contains: tuple[str, ...] = ()

    def matches(self, name: str) -> bool:
        folded = _fold(name)
        if any(folded == _fold(n) for n in self.exact):
            return True
        return any(_fold(n) in folded for n in self.contains)


@dataclass(frozen=True)
class CostOfSalesPattern(NamePattern):
    """Expense account names treated as cost of sales."""


@dataclass(frozen=True)
class RoleRule:
    """Assigns ``role`` to accounts whose name and type match."""

    role: AccountRole
    pattern: NamePattern
    account_types: tuple[AccountType, ...] = ()

    def matches(self, name: str, account_type: AccountType) -> bool:
        if self.account_types and account_type not in self.account_types:
            return False
        return self.pattern.matches(name)


# ---------------------------------------------------------------------------
# System accounts and presentation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SystemAccountLabels:
    """Accepted names of the system accounts, used when no role is set."""

    retained_earnings: tuple[str, ...]
    depreciation_expense: tuple[str, ...]
    accumulated_depreciation: tuple[str, ...]

    def labels_for(self, role: AccountRole) -> tuple[str, ...]:
        if role == AccountRole.RETAINED_EARNINGS:
            return self.retained_earnings
        if role == AccountRole.DEPRECIATION_EXPENSE:
            return self.depreciation_expense
        if role == AccountRole.ACCUMULATED_DEPRECIATION:
            return self.accumulated_depreciation
        return ()


@dataclass(frozen=True)
class UnknownAccountLabel:
    """Code and name given to synthetic rows for unknown account ids."""

    code: str = UNKNOWN_ACCOUNT_CODE
    name_format: str = UNKNOWN_ACCOUNT_NAME_FORMAT


@dataclass(frozen=True)
class DepreciationSettings:
    horizon_years: int = 10
    query_horizon_years: int = 50
    entry_description_format: str = "{asset_name} depreciation"


@dataclass(frozen=True)
class ClosingSettings:
    profit_transfer_format: str = "Transfer of net income ({fiscal_year_end})"
    loss_transfer_format: str = "Transfer of net loss ({fiscal_year_end})"


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BookkeepingConfig:
    """Complete configuration document."""

    config_id: str
    version: int
    system_accounts: SystemAccountLabels
    cost_of_sales: CostOfSalesPattern
    role_rules: tuple[RoleRule, ...]
    unknown_account: UnknownAccountLabel = UnknownAccountLabel()
    depreciation: DepreciationSettings = DepreciationSettings()
    closing: ClosingSettings = ClosingSettings()
    checksum: str = ""

    def infer_role(self, name: str, account_type: AccountType) -> AccountRole | None:
        """First matching rule wins."""
        for rule in self.role_rules:
            if rule.matches(name, account_type):
                return rule.role
        return None
