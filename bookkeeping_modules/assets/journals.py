"""
Depreciation journal generation (``bookkeeping_modules.assets.journals``).

Responsibility
--------------
Turn the depreciation schedules of a set of fixed assets into draft
journal entries for one fiscal year, and find entries already posted for
that year so callers can avoid double posting.

Architecture position
---------------------
**Modules layer** -- pure orchestration over the depreciation engine.
Drafts are returned, never posted; posting is the caller's job.

Invariants enforced
-------------------
* One draft per non-disposed asset with a nonzero current-year amount:
  debit depreciation expense, credit accumulated depreciation, dated at
  the fiscal year end.
* The batch is all-or-nothing: a missing system account or an invalid
  asset yields no drafts at all.
* Draft ids are deterministic per (asset, fiscal year).

Failure modes
-------------
* Missing depreciation-expense or accumulated-depreciation account ->
  ``MISSING_SYSTEM_ACCOUNT`` configuration error, no drafts.
* Invalid asset -> the engine's validation errors, no drafts.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import NAMESPACE_URL, uuid5

from bookkeeping_config import get_default_config
from bookkeeping_config.schema import BookkeepingConfig
from bookkeeping_engines.depreciation import SwitchPolicy, calculate_depreciation_schedule
from bookkeeping_kernel.domain.clock import Clock
from bookkeeping_kernel.domain.results import Issue, IssueCarrier, IssueCode
from bookkeeping_kernel.logging_config import LogContext, get_logger
from bookkeeping_kernel.models.account import Account, AccountRole
from bookkeeping_kernel.models.fiscal_year import FiscalCalendar, FiscalYear
from bookkeeping_kernel.models.fixed_asset import FixedAsset
from bookkeeping_kernel.models.journal import JournalEntry
from bookkeeping_modules._system_accounts import find_system_account

logger = get_logger("modules.assets.journals")

ZERO = Decimal("0")

_DRAFT_NAMESPACE = uuid5(NAMESPACE_URL, "bookkeeping:depreciation-draft")


@dataclass(frozen=True)
class DepreciationJournalBatch(IssueCarrier):
    """Draft depreciation entries for one fiscal year."""

    fiscal_year: FiscalYear
    entries: tuple[JournalEntry, ...]
    total_amount: Decimal
    asset_count: int
    issues: tuple[Issue, ...] = ()


def draft_entry_id(asset_id: str, fiscal_year: FiscalYear) -> str:
    return str(uuid5(_DRAFT_NAMESPACE, f"{asset_id}:{fiscal_year.start.isoformat()}"))


def _resolve_accounts(
    accounts: Sequence[Account],
    config: BookkeepingConfig,
) -> tuple[Account | None, Account | None, list[Issue]]:
    expense = find_system_account(accounts, AccountRole.DEPRECIATION_EXPENSE, config)
    accumulated = find_system_account(
        accounts, AccountRole.ACCUMULATED_DEPRECIATION, config
    )
    missing = tuple(
        role.value
        for role, account in (
            (AccountRole.DEPRECIATION_EXPENSE, expense),
            (AccountRole.ACCUMULATED_DEPRECIATION, accumulated),
        )
        if account is None
    )
    issues: list[Issue] = []
    if missing:
        issues.append(
            Issue.configuration(
                IssueCode.MISSING_SYSTEM_ACCOUNT,
                f"Required system account(s) missing: {', '.join(missing)}",
                details={"missing_roles": missing},
            )
        )
    return expense, accumulated, issues


def generate_depreciation_journals(
    assets: Sequence[FixedAsset],
    accounts: Sequence[Account],
    calendar: FiscalCalendar,
    fiscal_year: FiscalYear,
    clock: Clock,
    config: BookkeepingConfig | None = None,
    switch_policy: SwitchPolicy = SwitchPolicy.LOCKED,
) -> DepreciationJournalBatch:
    """
    Draft one depreciation entry per eligible asset for ``fiscal_year``.

    Preconditions:
        ``fiscal_year`` belongs to ``calendar``.
    Postconditions:
        Either every eligible asset has a draft, or ``entries`` is empty
        and ``errors`` explains why.
    """
    config = config or get_default_config()

    with LogContext.bind(fiscal_year=str(fiscal_year.label)):
        expense, accumulated, issues = _resolve_accounts(accounts, config)
        if issues:
            logger.warning(
                "depreciation_journals_refused",
                extra={"missing_roles": list(issues[0].details["missing_roles"])},
            )
            return DepreciationJournalBatch(fiscal_year, (), ZERO, 0, tuple(issues))

        created_at = clock.now()
        drafts: list[JournalEntry] = []
        errors: list[Issue] = []
        for asset in assets:
            if asset.is_disposed:
                continue
            schedule = calculate_depreciation_schedule(
                asset,
                calendar,
                horizon_years=config.depreciation.query_horizon_years,
                switch_policy=switch_policy,
            )
            if not schedule.ok:
                errors.extend(schedule.errors)
                continue
            amount = schedule.current_year_depreciation(fiscal_year.label)
            if amount == 0:
                continue
            drafts.append(
                JournalEntry(
                    id=draft_entry_id(asset.id, fiscal_year),
                    date=fiscal_year.end,
                    debit_account_id=expense.id,
                    credit_account_id=accumulated.id,
                    amount=amount,
                    description=config.depreciation.entry_description_format.format(
                        asset_name=asset.name
                    ),
                    created_at=created_at,
                )
            )

        if errors:
            logger.warning(
                "depreciation_journals_refused",
                extra={"invalid_asset_count": len(errors)},
            )
            return DepreciationJournalBatch(fiscal_year, (), ZERO, 0, tuple(errors))

        batch = DepreciationJournalBatch(
            fiscal_year=fiscal_year,
            entries=tuple(drafts),
            total_amount=sum((d.amount for d in drafts), ZERO),
            asset_count=len(drafts),
        )
        logger.info(
            "depreciation_journals_generated",
            extra={
                "asset_count": batch.asset_count,
                "total_amount": str(batch.total_amount),
            },
        )
        return batch


def find_depreciation_journals(
    entries: Sequence[JournalEntry],
    accounts: Sequence[Account],
    fiscal_year: FiscalYear,
    config: BookkeepingConfig | None = None,
) -> tuple[JournalEntry, ...]:
    """Entries debiting depreciation expense and crediting accumulated
    depreciation, dated within ``fiscal_year``."""
    config = config or get_default_config()
    expense, accumulated, issues = _resolve_accounts(accounts, config)
    if issues:
        return ()
    return tuple(
        e
        for e in entries
        if e.debit_account_id == expense.id
        and e.credit_account_id == accumulated.id
        and fiscal_year.contains(e.date)
    )


def has_depreciation_journals(
    entries: Sequence[JournalEntry],
    accounts: Sequence[Account],
    fiscal_year: FiscalYear,
    config: BookkeepingConfig | None = None,
) -> bool:
    return bool(find_depreciation_journals(entries, accounts, fiscal_year, config))
