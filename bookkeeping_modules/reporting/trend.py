"""
Monthly trend of revenue, expense and per-account movement.

Covers the twelve calendar months of one year. Revenue and expense are
net display movements (debit postings to revenue reduce revenue,
credit postings to expense reduce expense). Account movements are raw:
debit postings add, credit postings subtract.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from bookkeeping_kernel.domain.validation import validate_entries
from bookkeeping_kernel.logging_config import get_logger
from bookkeeping_kernel.models.account import Account, AccountType
from bookkeeping_kernel.models.journal import JournalEntry
from bookkeeping_modules.reporting.config import ReportingConfig
from bookkeeping_modules.reporting.models import (
    AccountMovement,
    MonthlyTrendPoint,
    MonthlyTrendReport,
    ReportMetadata,
    ReportType,
)

logger = get_logger("modules.reporting.trend")

ZERO = Decimal("0")


def build_monthly_trend(
    entries: Sequence[JournalEntry],
    accounts: Sequence[Account],
    year: int,
    config: ReportingConfig | None = None,
) -> MonthlyTrendReport:
    """Twelve monthly points for calendar ``year``."""
    config = config or ReportingConfig()
    metadata = ReportMetadata(
        report_type=ReportType.MONTHLY_TREND,
        entity_name=config.entity_name,
    )
    entries = [e for e in entries if e.date.year == year]
    issues = validate_entries(entries)
    if any(i.is_error for i in issues):
        return MonthlyTrendReport(metadata=metadata, year=year, months=(), issues=issues)

    types = {a.id: a.account_type for a in accounts}
    movements: list[dict[str, Decimal]] = [{} for _ in range(12)]
    for entry in entries:
        bucket = movements[entry.date.month - 1]
        amount = Decimal(entry.amount)
        bucket[entry.debit_account_id] = bucket.get(entry.debit_account_id, ZERO) + amount
        bucket[entry.credit_account_id] = bucket.get(entry.credit_account_id, ZERO) - amount

    points: list[MonthlyTrendPoint] = []
    for index, bucket in enumerate(movements):
        revenue = -sum(
            (v for k, v in bucket.items() if types.get(k) == AccountType.REVENUE), ZERO
        )
        expense = sum(
            (v for k, v in bucket.items() if types.get(k) == AccountType.EXPENSE), ZERO
        )
        points.append(
            MonthlyTrendPoint(
                year=year,
                month=index + 1,
                revenue=revenue,
                expense=expense,
                profit=revenue - expense,
                movements=tuple(
                    AccountMovement(account_id=k, net_movement=v)
                    for k, v in sorted(bucket.items())
                    if v != 0
                ),
            )
        )

    report = MonthlyTrendReport(
        metadata=metadata, year=year, months=tuple(points), issues=issues
    )
    logger.info(
        "monthly_trend_built",
        extra={
            "year": year,
            "total_revenue": str(report.total_revenue),
            "total_expense": str(report.total_expense),
        },
    )
    return report
