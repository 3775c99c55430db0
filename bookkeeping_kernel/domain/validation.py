"""
Lightweight domain validation helpers.

Pure checks with no I/O. Monetary inputs must be ``Decimal`` or ``int``;
binary floats are rejected outright rather than silently converted.
Checks return ``Issue`` records instead of raising.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from bookkeeping_kernel.domain.results import Issue, IssueCode
from bookkeeping_kernel.models.journal import (
    SUPPORTED_TAX_RATES,
    JournalEntry,
    TaxInclusion,
)


def is_money(value: Any) -> bool:
    """True for finite Decimal or int (bool excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, Decimal) and value.is_finite()


def check_money(value: Any, field: str, *, positive: bool = False) -> Issue | None:
    """Return an issue if value is not usable as money, else None."""
    if not is_money(value):
        return Issue.validation(
            IssueCode.NON_DECIMAL_AMOUNT,
            f"{field} must be Decimal or int, got {type(value).__name__}",
            field=field,
        )
    if positive and value <= 0:
        return Issue.validation(
            IssueCode.INVALID_AMOUNT,
            f"{field} must be positive, got {value}",
            field=field,
        )
    return None


def check_tax_rate(rate: Any, field: str = "tax_rate") -> Issue | None:
    supported = (
        not isinstance(rate, bool)
        and isinstance(rate, (int, Decimal))
        and rate in SUPPORTED_TAX_RATES
    )
    if not supported:
        return Issue.validation(
            IssueCode.UNSUPPORTED_TAX_RATE,
            f"{field} must be one of {sorted(SUPPORTED_TAX_RATES)}, got {rate!r}",
            field=field,
        )
    return None


def check_tax_inclusion(mode: Any, field: str = "tax_inclusion") -> Issue | None:
    if isinstance(mode, TaxInclusion):
        return None
    try:
        TaxInclusion(mode)
    except ValueError:
        return Issue.validation(
            IssueCode.UNSUPPORTED_TAX_INCLUSION,
            f"{field} must be 'included' or 'excluded', got {mode!r}",
            field=field,
        )
    return None


def validate_entry(entry: JournalEntry) -> list[Issue]:
    """Validate one journal entry. Field paths are prefixed with the entry id."""
    issues: list[Issue] = []
    prefix = f"entries[{entry.id}]"

    amount_issue = check_money(entry.amount, f"{prefix}.amount", positive=True)
    if amount_issue is not None:
        issues.append(amount_issue)

    if entry.tax_rate is not None:
        rate_issue = check_tax_rate(entry.tax_rate, f"{prefix}.tax_rate")
        if rate_issue is not None:
            issues.append(rate_issue)
    if entry.tax_inclusion is not None:
        mode_issue = check_tax_inclusion(entry.tax_inclusion, f"{prefix}.tax_inclusion")
        if mode_issue is not None:
            issues.append(mode_issue)

    if entry.debit_account_id == entry.credit_account_id:
        issues.append(
            Issue.integrity_warning(
                IssueCode.SELF_REFERENCING_ENTRY,
                f"Entry {entry.id} debits and credits the same account",
                field=prefix,
                details={"account_id": entry.debit_account_id},
            )
        )
    return issues


def validate_entries(entries: Iterable[JournalEntry]) -> tuple[Issue, ...]:
    issues: list[Issue] = []
    for entry in entries:
        issues.extend(validate_entry(entry))
    return tuple(issues)
