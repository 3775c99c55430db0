"""
Module: bookkeeping_kernel.models.opening_balance
Responsibility: Per-account opening balances for a fiscal year.

Amounts use the raw convention: positive = debit side, negative = credit
side, regardless of account type. A set is replaced wholesale at closing,
never merged.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class OpeningBalance:
    account_id: str
    amount: Decimal


@dataclass(frozen=True)
class OpeningBalanceSet:
    """The opening balances of one fiscal year."""

    fiscal_year_start: date
    balances: tuple[OpeningBalance, ...] = field(default_factory=tuple)

    @classmethod
    def from_mapping(
        cls, fiscal_year_start: date, amounts: dict[str, Decimal]
    ) -> OpeningBalanceSet:
        return cls(
            fiscal_year_start=fiscal_year_start,
            balances=tuple(OpeningBalance(k, v) for k, v in amounts.items()),
        )

    def as_mapping(self) -> dict[str, Decimal]:
        return opening_amounts(self.balances)

    def amount_for(self, account_id: str) -> Decimal:
        return self.as_mapping().get(account_id, Decimal("0"))


def opening_amounts(
    balances: OpeningBalanceSet | Iterable[OpeningBalance] | None,
) -> dict[str, Decimal]:
    """Collapse opening balances to {account_id: signed amount}."""
    if balances is None:
        return {}
    if isinstance(balances, OpeningBalanceSet):
        balances = balances.balances
    out: dict[str, Decimal] = {}
    for ob in balances:
        out[ob.account_id] = out.get(ob.account_id, Decimal("0")) + Decimal(ob.amount)
    return out
