"""
Module: bookkeeping_kernel.models.journal
Responsibility: Journal entry value type and its tax annotations.
Architecture position: Kernel > Models.

Each entry posts one amount to exactly one debit account and one credit
account. Entries are ordered by ``posting_key`` (date, creation timestamp)
before any running-balance walk.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum


class TaxType(str, Enum):
    TAXABLE_SALES = "taxable_sales"
    TAXABLE_PURCHASE = "taxable_purchase"
    TAX_EXEMPT = "tax_exempt"
    OUT_OF_SCOPE = "out_of_scope"
    TAX_FREE_EXPORT = "tax_free_export"


class TaxInclusion(str, Enum):
    """Whether an amount already contains consumption tax."""

    INCLUDED = "included"
    EXCLUDED = "excluded"


SUPPORTED_TAX_RATES = frozenset({0, 8, 10})

_NO_TIMESTAMP = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True)
class JournalEntry:
    id: str
    date: date
    debit_account_id: str
    credit_account_id: str
    amount: Decimal
    description: str = ""
    debit_sub_account_id: str | None = None
    credit_sub_account_id: str | None = None
    tax_type: TaxType | None = None
    tax_rate: int | None = None
    tax_inclusion: TaxInclusion | None = None
    tax_amount: Decimal | None = None
    created_at: datetime | None = None

    @property
    def posting_key(self) -> tuple[date, bool, datetime]:
        """Sort key: entry date, then creation instant (missing sorts first).

        Timestamps compare as instants, so offsets do not affect order. Naive
        timestamps are read as UTC.
        """
        if self.created_at is None:
            return (self.date, False, _NO_TIMESTAMP)
        stamp = self.created_at
        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=UTC)
        return (self.date, True, stamp.astimezone(UTC))

    def touches(self, account_id: str) -> bool:
        return account_id in (self.debit_account_id, self.credit_account_id)


def sort_for_posting(entries) -> list[JournalEntry]:
    """Stable sort by (date, creation timestamp)."""
    return sorted(entries, key=lambda e: e.posting_key)
