"""
Module: bookkeeping_engines.aggregation
Responsibility:
    Fold journal entries and opening balances into per-account debit and
    credit totals, walk running balances for the general ledger and the
    sub-account ledger, and list per-customer or per-supplier balances.

Architecture position:
    Engines -- pure calculation layer, zero I/O. Imports only the kernel.

Invariants enforced:
    - raw balance = debit total - credit total, where opening balances fold
      in as debit total += amount (amount > 0) or credit total += |amount|.
    - Summed over every row (known and unknown), raw balances total zero.
    - Entries referencing an unknown account id are aggregated into a
      synthetic row and flagged with an UNKNOWN_ACCOUNT warning.
    - Identical inputs always produce identical output.

Failure modes:
    - Malformed entries inside the date window (non-positive amount, float
      amount, unsupported tax rate) refuse the computation: the snapshot
      has no rows and carries the validation errors.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from bookkeeping_kernel.domain.results import Issue, IssueCarrier, IssueCode
from bookkeeping_kernel.domain.validation import validate_entries
from bookkeeping_kernel.logging_config import get_logger
from bookkeeping_kernel.models.account import (
    TYPE_ORDER,
    UNKNOWN_ACCOUNT_CODE,
    UNKNOWN_ACCOUNT_NAME_FORMAT,
    Account,
    AccountRole,
    AccountType,
    NormalBalance,
    SubAccount,
    display_balance,
    normal_balance_for,
)
from bookkeeping_kernel.models.journal import JournalEntry, sort_for_posting
from bookkeeping_kernel.models.opening_balance import (
    OpeningBalance,
    OpeningBalanceSet,
    opening_amounts,
)
from bookkeeping_engines.tracer import traced_engine

logger = get_logger("engines.aggregation")

ZERO = Decimal("0")

OpeningInput = OpeningBalanceSet | Iterable[OpeningBalance] | None


def in_period(d: date, start: date | None, end: date | None) -> bool:
    """Inclusive date-range check; None bounds are open."""
    if start is not None and d < start:
        return False
    if end is not None and d > end:
        return False
    return True


# =============================================================================
# Per-account totals
# =============================================================================


@dataclass(frozen=True)
class AccountTotals:
    """
    Aggregated totals for one account.

    ``debit_total`` and ``credit_total`` are non-negative and include the
    folded opening balance. ``opening_balance`` keeps the signed opening
    amount so period movement can be recovered.
    """

    account_id: str
    code: str
    name: str
    account_type: AccountType
    role: AccountRole | None
    debit_total: Decimal
    credit_total: Decimal
    opening_balance: Decimal = ZERO
    entry_count: int = 0
    is_unknown: bool = False

    @property
    def raw_balance(self) -> Decimal:
        return self.debit_total - self.credit_total

    @property
    def display_balance(self) -> Decimal:
        return display_balance(self.account_type, self.raw_balance)

    @property
    def movement(self) -> Decimal:
        """Raw balance change from entries only (opening excluded)."""
        return self.raw_balance - self.opening_balance

    @property
    def touched(self) -> bool:
        return self.entry_count > 0 or self.opening_balance != 0

    @property
    def balance_side(self) -> NormalBalance:
        """Column holding the net balance.

        A zero balance sits in the account's normal column.
        """
        raw = self.raw_balance
        if normal_balance_for(self.account_type) == NormalBalance.DEBIT:
            return NormalBalance.DEBIT if raw >= 0 else NormalBalance.CREDIT
        return NormalBalance.DEBIT if raw > 0 else NormalBalance.CREDIT

    @property
    def debit_balance(self) -> Decimal:
        if self.balance_side == NormalBalance.DEBIT:
            return self.raw_balance
        return ZERO

    @property
    def credit_balance(self) -> Decimal:
        if self.balance_side == NormalBalance.CREDIT:
            return abs(self.raw_balance)
        return ZERO


@dataclass(frozen=True)
class LedgerSnapshot(IssueCarrier):
    """Output of the ledger aggregator: one row per account."""

    rows: tuple[AccountTotals, ...]
    period_start: date | None = None
    period_end: date | None = None
    include_opening: bool = True
    issues: tuple[Issue, ...] = ()

    def get(self, account_id: str) -> AccountTotals | None:
        for row in self.rows:
            if row.account_id == account_id:
                return row
        return None

    def by_type(self, account_type: AccountType) -> tuple[AccountTotals, ...]:
        return tuple(
            r for r in self.rows if r.account_type == account_type and not r.is_unknown
        )

    def by_role(self, role: AccountRole) -> tuple[AccountTotals, ...]:
        return tuple(r for r in self.rows if r.role == role)

    @property
    def unknown_rows(self) -> tuple[AccountTotals, ...]:
        return tuple(r for r in self.rows if r.is_unknown)

    @property
    def total_debits(self) -> Decimal:
        return sum((r.debit_total for r in self.rows), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((r.credit_total for r in self.rows), ZERO)

    @property
    def raw_total(self) -> Decimal:
        return sum((r.raw_balance for r in self.rows), ZERO)


def _row_sort_key(row: AccountTotals) -> tuple[int, int, str]:
    if row.is_unknown:
        return (1, 0, row.account_id)
    return (0, TYPE_ORDER.index(row.account_type), row.code)


@traced_engine(
    "ledger_aggregator",
    "1.0",
    fingerprint_fields=(
        "entries",
        "accounts",
        "opening_balances",
        "include_opening",
        "period_start",
        "period_end",
    ),
)
def aggregate_ledger(
    entries: Sequence[JournalEntry],
    accounts: Sequence[Account],
    opening_balances: OpeningInput = None,
    include_opening: bool = True,
    period_start: date | None = None,
    period_end: date | None = None,
    unknown_code: str = UNKNOWN_ACCOUNT_CODE,
    unknown_name_format: str = UNKNOWN_ACCOUNT_NAME_FORMAT,
) -> LedgerSnapshot:
    """Aggregate entries (inclusive date filter) and opening balances per account.

    Preconditions:
        entries inside the window carry Decimal/int amounts > 0 and
        supported tax rates. Entries outside the window are never read, so
        they are not validated either.

    Postconditions:
        Every chart account has a row. Unknown ids referenced by entries get
        a synthetic asset-typed row carrying only entry-sourced totals.
        Opening balances for unknown ids are ignored with a warning.
    """
    t0 = time.monotonic()
    entries = [e for e in entries if in_period(e.date, period_start, period_end)]
    validation = validate_entries(entries)
    errors = tuple(i for i in validation if i.is_error)
    if errors:
        logger.warning(
            "ledger_aggregation_refused",
            extra={"error_count": len(errors), "first_code": errors[0].code},
        )
        return LedgerSnapshot(
            rows=(),
            period_start=period_start,
            period_end=period_end,
            include_opening=include_opening,
            issues=validation,
        )

    issues: list[Issue] = list(validation)
    known = {a.id: a for a in accounts}
    debits: dict[str, Decimal] = {a.id: ZERO for a in accounts}
    credits: dict[str, Decimal] = {a.id: ZERO for a in accounts}
    counts: dict[str, int] = {a.id: 0 for a in accounts}
    openings: dict[str, Decimal] = {}

    if include_opening:
        for account_id, amount in sorted(opening_amounts(opening_balances).items()):
            if account_id not in known:
                issues.append(
                    Issue.integrity_warning(
                        IssueCode.UNKNOWN_OPENING_ACCOUNT,
                        f"Opening balance references unknown account {account_id}",
                        field="opening_balances",
                        details={"account_id": account_id, "amount": str(amount)},
                    )
                )
                continue
            openings[account_id] = amount
            if amount > 0:
                debits[account_id] += amount
            else:
                credits[account_id] += -amount

    unknown_refs: dict[str, list[str]] = {}
    for entry in entries:
        amount = Decimal(entry.amount)
        for account_id, bucket in (
            (entry.debit_account_id, debits),
            (entry.credit_account_id, credits),
        ):
            if account_id not in bucket:
                debits.setdefault(account_id, ZERO)
                credits.setdefault(account_id, ZERO)
                counts.setdefault(account_id, 0)
            bucket[account_id] += amount
            counts[account_id] += 1
            if account_id not in known:
                unknown_refs.setdefault(account_id, []).append(entry.id)

    rows: list[AccountTotals] = []
    for account_id in debits:
        account = known.get(account_id)
        if account is not None:
            rows.append(
                AccountTotals(
                    account_id=account.id,
                    code=account.code,
                    name=account.name,
                    account_type=account.account_type,
                    role=account.role,
                    debit_total=debits[account_id],
                    credit_total=credits[account_id],
                    opening_balance=openings.get(account_id, ZERO),
                    entry_count=counts[account_id],
                )
            )
        else:
            rows.append(
                AccountTotals(
                    account_id=account_id,
                    code=unknown_code,
                    name=unknown_name_format.format(
                        short_id=account_id[:8], account_id=account_id
                    ),
                    account_type=AccountType.ASSET,
                    role=None,
                    debit_total=debits[account_id],
                    credit_total=credits[account_id],
                    entry_count=counts[account_id],
                    is_unknown=True,
                )
            )

    for account_id in sorted(unknown_refs):
        entry_ids = unknown_refs[account_id]
        issues.append(
            Issue.integrity_warning(
                IssueCode.UNKNOWN_ACCOUNT,
                f"{len(entry_ids)} entry posting(s) reference unknown account {account_id}",
                field="entries",
                details={"account_id": account_id, "entry_ids": tuple(entry_ids)},
            )
        )

    rows.sort(key=_row_sort_key)
    snapshot = LedgerSnapshot(
        rows=tuple(rows),
        period_start=period_start,
        period_end=period_end,
        include_opening=include_opening,
        issues=tuple(issues),
    )

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info(
        "ledger_aggregated",
        extra={
            "account_count": len(rows),
            "unknown_account_count": len(unknown_refs),
            "total_debits": str(snapshot.total_debits),
            "total_credits": str(snapshot.total_credits),
            "warning_count": len(snapshot.warnings),
            "duration_ms": duration_ms,
        },
    )
    return snapshot


# =============================================================================
# Running-balance ledgers
# =============================================================================


@dataclass(frozen=True)
class LedgerLine:
    """One posting in a running-balance ledger. ``balance`` uses display sign."""

    entry_id: str
    date: date
    description: str
    counter_account_id: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class AccountLedger(IssueCarrier):
    """General ledger (or sub-account ledger) for one account."""

    account_id: str
    sub_account_id: str | None
    opening_balance: Decimal
    lines: tuple[LedgerLine, ...]
    issues: tuple[Issue, ...] = ()

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def closing_balance(self) -> Decimal:
        if self.lines:
            return self.lines[-1].balance
        return self.opening_balance


def _walk(
    account: Account,
    postings: list[tuple[JournalEntry, bool, bool]],
    opening_display: Decimal,
) -> list[LedgerLine]:
    lines: list[LedgerLine] = []
    balance = opening_display
    for entry, on_debit, on_credit in postings:
        amount = Decimal(entry.amount)
        debit = amount if on_debit else ZERO
        credit = amount if on_credit else ZERO
        if account.is_debit_normal:
            balance += debit - credit
        else:
            balance += credit - debit
        if on_debit and not on_credit:
            counter = entry.credit_account_id
        else:
            counter = entry.debit_account_id
        lines.append(
            LedgerLine(
                entry_id=entry.id,
                date=entry.date,
                description=entry.description,
                counter_account_id=counter,
                debit=debit,
                credit=credit,
                balance=balance,
            )
        )
    return lines


@traced_engine("general_ledger", "1.0", fingerprint_fields=("entries", "account"))
def general_ledger(
    entries: Sequence[JournalEntry],
    account: Account,
    opening_balances: OpeningInput = None,
    include_opening: bool = True,
    period_start: date | None = None,
    period_end: date | None = None,
) -> AccountLedger:
    """Running display balance for one account, ordered by posting key."""
    entries = [e for e in entries if in_period(e.date, period_start, period_end)]
    validation = validate_entries(entries)
    if any(i.is_error for i in validation):
        return AccountLedger(account.id, None, ZERO, (), validation)

    opening_raw = ZERO
    if include_opening:
        opening_raw = opening_amounts(opening_balances).get(account.id, ZERO)
    opening_display = display_balance(account.account_type, opening_raw)

    postings = [
        (e, e.debit_account_id == account.id, e.credit_account_id == account.id)
        for e in sort_for_posting(entries)
        if e.touches(account.id)
    ]
    lines = _walk(account, postings, opening_display)
    logger.info(
        "general_ledger_built",
        extra={"account_id": account.id, "line_count": len(lines)},
    )
    return AccountLedger(account.id, None, opening_display, tuple(lines), validation)


@traced_engine(
    "sub_account_ledger",
    "1.0",
    fingerprint_fields=("entries", "account", "sub_account_id"),
)
def sub_account_ledger(
    entries: Sequence[JournalEntry],
    account: Account,
    sub_account_id: str,
    period_start: date | None = None,
    period_end: date | None = None,
) -> AccountLedger:
    """Running balance for an (account, sub-account) pair.

    An entry matches when the account is used on a side whose sub-account
    id equals ``sub_account_id``. No opening balance is carried; sub-accounts
    are tagging only.
    """
    entries = [e for e in entries if in_period(e.date, period_start, period_end)]
    validation = validate_entries(entries)
    if any(i.is_error for i in validation):
        return AccountLedger(account.id, sub_account_id, ZERO, (), validation)

    postings: list[tuple[JournalEntry, bool, bool]] = []
    for e in sort_for_posting(entries):
        on_debit = (
            e.debit_account_id == account.id and e.debit_sub_account_id == sub_account_id
        )
        on_credit = (
            e.credit_account_id == account.id and e.credit_sub_account_id == sub_account_id
        )
        if on_debit or on_credit:
            postings.append((e, on_debit, on_credit))

    lines = _walk(account, postings, ZERO)
    logger.info(
        "sub_account_ledger_built",
        extra={
            "account_id": account.id,
            "sub_account_id": sub_account_id,
            "line_count": len(lines),
        },
    )
    return AccountLedger(account.id, sub_account_id, ZERO, tuple(lines), validation)


# =============================================================================
# Sub-account balance list
# =============================================================================

# Parent accounts whose sub-accounts appear in each balance list.
SUB_ACCOUNT_PARENT_ROLES: dict[AccountRole, frozenset[AccountRole]] = {
    AccountRole.RECEIVABLE: frozenset(
        {AccountRole.RECEIVABLE, AccountRole.OTHER_CURRENT_ASSET}
    ),
    AccountRole.PAYABLE: frozenset(
        {AccountRole.PAYABLE, AccountRole.OTHER_CURRENT_LIABILITY}
    ),
}


@dataclass(frozen=True)
class SubAccountBalance:
    """Totals for one customer or supplier.

    ``balance`` uses the display sign of the parent account.
    """

    sub_account_id: str
    parent_account_id: str
    code: str
    name: str
    debit_total: Decimal
    credit_total: Decimal
    balance: Decimal
    transaction_count: int
    last_transaction_date: date | None = None


@dataclass(frozen=True)
class SubAccountBalanceReport(IssueCarrier):
    """Per-customer (receivable) or per-supplier (payable) balances as of a date."""

    role: AccountRole
    as_of: date | None
    rows: tuple[SubAccountBalance, ...]
    issues: tuple[Issue, ...] = ()

    @property
    def total_debit(self) -> Decimal:
        return sum((r.debit_total for r in self.rows), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((r.credit_total for r in self.rows), ZERO)

    @property
    def total_balance(self) -> Decimal:
        return sum((r.balance for r in self.rows), ZERO)

    @property
    def transaction_count(self) -> int:
        return sum(r.transaction_count for r in self.rows)

    def get(self, sub_account_id: str) -> SubAccountBalance | None:
        for row in self.rows:
            if row.sub_account_id == sub_account_id:
                return row
        return None


@traced_engine(
    "sub_account_balances",
    "1.0",
    fingerprint_fields=("entries", "accounts", "sub_accounts", "role", "as_of"),
)
def sub_account_balances(
    entries: Sequence[JournalEntry],
    accounts: Sequence[Account],
    sub_accounts: Sequence[SubAccount],
    role: AccountRole,
    as_of: date | None = None,
    include_zero_balances: bool = False,
) -> SubAccountBalanceReport:
    """Balance of every sub-account under receivable or payable parents.

    ``role`` is RECEIVABLE (parents with the receivable or other current
    asset role) or PAYABLE (payable or other current liability). Only
    entries dated on or before ``as_of`` count. A posting counts toward a
    sub-account when its parent account is used on the side that carries
    the sub-account tag.

    Rows with a zero balance and no transactions are dropped unless
    ``include_zero_balances``. Rows sort by absolute balance, largest
    first, then by code.

    Raises:
        ValueError: ``role`` is neither RECEIVABLE nor PAYABLE.
    """
    role = AccountRole(role)
    if role not in SUB_ACCOUNT_PARENT_ROLES:
        raise ValueError(
            f"sub-account balances need a receivable or payable role, got {role.value}"
        )

    entries = [e for e in entries if in_period(e.date, None, as_of)]
    validation = validate_entries(entries)
    if any(i.is_error for i in validation):
        return SubAccountBalanceReport(role=role, as_of=as_of, rows=(), issues=validation)

    parents = {
        a.id: a for a in accounts if a.role in SUB_ACCOUNT_PARENT_ROLES[role]
    }
    tracked = {s.id: s for s in sub_accounts if s.parent_account_id in parents}
    debits: dict[str, Decimal] = {sid: ZERO for sid in tracked}
    credits: dict[str, Decimal] = {sid: ZERO for sid in tracked}
    counts: dict[str, int] = {sid: 0 for sid in tracked}
    last_dates: dict[str, date] = {}

    for entry in entries:
        amount = Decimal(entry.amount)
        for account_id, sub_id, bucket in (
            (entry.debit_account_id, entry.debit_sub_account_id, debits),
            (entry.credit_account_id, entry.credit_sub_account_id, credits),
        ):
            sub = tracked.get(sub_id) if sub_id is not None else None
            if sub is None or sub.parent_account_id != account_id:
                continue
            bucket[sub_id] += amount
            counts[sub_id] += 1
            if sub_id not in last_dates or entry.date > last_dates[sub_id]:
                last_dates[sub_id] = entry.date

    rows: list[SubAccountBalance] = []
    for sub_id, sub in tracked.items():
        raw = debits[sub_id] - credits[sub_id]
        balance = display_balance(parents[sub.parent_account_id].account_type, raw)
        if balance == 0 and counts[sub_id] == 0 and not include_zero_balances:
            continue
        rows.append(
            SubAccountBalance(
                sub_account_id=sub_id,
                parent_account_id=sub.parent_account_id,
                code=sub.code,
                name=sub.name,
                debit_total=debits[sub_id],
                credit_total=credits[sub_id],
                balance=balance,
                transaction_count=counts[sub_id],
                last_transaction_date=last_dates.get(sub_id),
            )
        )
    rows.sort(key=lambda r: (-abs(r.balance), r.code, r.sub_account_id))

    report = SubAccountBalanceReport(
        role=role, as_of=as_of, rows=tuple(rows), issues=validation
    )
    logger.info(
        "sub_account_balances_computed",
        extra={
            "role": role,
            "parent_count": len(parents),
            "row_count": len(rows),
            "total_balance": str(report.total_balance),
        },
    )
    return report
