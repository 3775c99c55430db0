"""
Tests for the year-end closing preview.

Covers:
- Net profit and the transfer to retained earnings (profit and loss)
- Closing balances and raw-signed carry-forward
- Revenue and expense reset
- Missing retained earnings (soft failure)
- Carry-forward continuity into the next year's trial balance
"""

from datetime import date
from decimal import Decimal

from bookkeeping_engines.aggregation import aggregate_ledger
from bookkeeping_kernel.domain.results import IssueCode, IssueKind, Severity
from bookkeeping_kernel.models.fiscal_year import FiscalYear
from bookkeeping_kernel.models.opening_balance import OpeningBalance, OpeningBalanceSet
from bookkeeping_modules.closing import preview_year_end_closing
from bookkeeping_modules.reporting import build_trial_balance

FY2024 = FiscalYear(date(2024, 1, 1))


def _openings(chart):
    return OpeningBalanceSet(
        fiscal_year_start=FY2024.start,
        balances=(
            OpeningBalance(chart["cash"].id, Decimal("1000")),
            OpeningBalance(chart["capital"].id, Decimal("-800")),
            OpeningBalance(chart["retained"].id, Decimal("-200")),
        ),
    )


def _profitable_year(chart, make_entry):
    return [
        make_entry(chart["cash"], chart["sales"], Decimal("5000"), on=date(2024, 3, 1)),
        make_entry(chart["rent"], chart["cash"], Decimal("1500"), on=date(2024, 4, 1)),
        make_entry(chart["receivable"], chart["sales"], Decimal("700"), on=date(2024, 5, 1)),
        # Outside the fiscal year.
        make_entry(chart["cash"], chart["sales"], Decimal("9999"), on=date(2025, 1, 1)),
    ]


class TestNetProfitAndTransfer:
    """Profit roll-in to retained earnings."""

    def test_profit_transfer(self, chart, accounts, make_entry):
        result = preview_year_end_closing(
            _profitable_year(chart, make_entry), accounts, _openings(chart), FY2024
        )
        assert result.ok
        assert result.net_profit == Decimal("4200")
        transfer = result.closing_transfer
        assert transfer.is_profit
        assert transfer.debit_account_id is None
        assert transfer.credit_account_id == chart["retained"].id
        assert transfer.amount == Decimal("4200")
        assert transfer.description == "当期純利益の振替（2024-12-31）"

    def test_loss_transfer(self, chart, accounts, make_entry):
        entries = [make_entry(chart["rent"], chart["cash"], Decimal("300"))]
        result = preview_year_end_closing(entries, accounts, _openings(chart), FY2024)
        assert result.net_profit == Decimal("-300")
        transfer = result.closing_transfer
        assert not transfer.is_profit
        assert transfer.debit_account_id == chart["retained"].id
        assert transfer.amount == Decimal("300")
        assert transfer.description == "当期純損失の振替（2024-12-31）"

    def test_revenue_reversal_and_expense_refund(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["cash"], chart["sales"], Decimal("1000")),
            make_entry(chart["sales"], chart["cash"], Decimal("100")),
            make_entry(chart["rent"], chart["cash"], Decimal("400")),
            make_entry(chart["cash"], chart["rent"], Decimal("50")),
        ]
        result = preview_year_end_closing(entries, accounts, None, FY2024)
        assert result.net_profit == Decimal("550")

    def test_no_transfer_when_break_even(self, chart, accounts):
        result = preview_year_end_closing([], accounts, _openings(chart), FY2024)
        assert result.net_profit == 0
        assert result.closing_transfer is None


class TestClosingBalances:
    """Closing balances and carry-forward."""

    def test_retained_earnings_absorbs_profit(self, chart, accounts, make_entry):
        result = preview_year_end_closing(
            _profitable_year(chart, make_entry), accounts, _openings(chart), FY2024
        )
        retained = result.closing_balance_for(chart["retained"].id)
        assert retained.raw_balance == Decimal("-4400")
        assert retained.display_balance == Decimal("4400")
        cash = result.closing_balance_for(chart["cash"].id)
        assert cash.raw_balance == Decimal("4500")
        assert cash.display_balance == Decimal("4500")

    def test_carry_forward_is_raw_and_balance_sheet_only(self, chart, accounts, make_entry):
        result = preview_year_end_closing(
            _profitable_year(chart, make_entry), accounts, _openings(chart), FY2024
        )
        carried = {b.account_id: b.amount for b in result.carry_forward_balances}
        assert carried == {
            chart["cash"].id: Decimal("4500"),
            chart["receivable"].id: Decimal("700"),
            chart["capital"].id: Decimal("-800"),
            chart["retained"].id: Decimal("-4400"),
        }
        assert result.carry_forward_total == 0

    def test_next_opening_balance_set(self, chart, accounts, make_entry):
        result = preview_year_end_closing(
            _profitable_year(chart, make_entry), accounts, _openings(chart), FY2024
        )
        assert result.next_fiscal_year_start == date(2025, 1, 1)
        next_set = result.next_opening_balances
        assert next_set.fiscal_year_start == date(2025, 1, 1)
        assert next_set.balances == result.carry_forward_balances

    def test_preview_is_repeatable(self, chart, accounts, make_entry):
        entries = _profitable_year(chart, make_entry)
        first = preview_year_end_closing(entries, accounts, _openings(chart), FY2024)
        second = preview_year_end_closing(entries, accounts, _openings(chart), FY2024)
        assert first == second

    def test_unknown_accounts_left_out(self, chart, accounts, make_entry):
        entries = [make_entry("ghost", chart["sales"], Decimal("100"))]
        result = preview_year_end_closing(entries, accounts, None, FY2024)
        assert all(b.account_id != "ghost" for b in result.carry_forward_balances)
        assert result.has_code(IssueCode.UNKNOWN_ACCOUNT)


class TestMissingRetainedEarnings:
    """Closing proceeds without rolling profit in."""

    def test_soft_failure(self, chart, accounts, make_entry):
        without = [a for a in accounts if a.id != chart["retained"].id]
        entries = [make_entry(chart["cash"], chart["sales"], Decimal("1000"))]
        result = preview_year_end_closing(entries, without, None, FY2024)

        assert result.ok
        assert result.closing_transfer is None
        assert result.retained_earnings_account_id is None
        assert result.net_profit == Decimal("1000")
        warning = result.warnings[0]
        assert warning.kind == IssueKind.CONFIGURATION
        assert warning.severity == Severity.WARNING
        assert warning.code == IssueCode.RETAINED_EARNINGS_NOT_FOUND
        # Cash still carries forward; the books simply do not close to zero.
        assert result.carry_forward_total == Decimal("1000")


class TestCarryForwardContinuity:
    """Next year's day-1 trial balance reproduces the closing balances."""

    def test_day_one_trial_balance(self, chart, accounts, make_entry):
        result = preview_year_end_closing(
            _profitable_year(chart, make_entry), accounts, _openings(chart), FY2024
        )
        next_year = FY2024.next()
        snapshot = aggregate_ledger(
            [],
            accounts,
            result.next_opening_balances,
            period_start=next_year.start,
            period_end=next_year.start,
        )
        report = build_trial_balance(snapshot)
        assert report.is_balanced
        for closing in result.closing_balances:
            line = report.line_for(closing.account_id)
            assert line.display_balance == closing.display_balance
        assert report.line_for(chart["sales"].id) is None

    def test_refused_on_invalid_entries(self, chart, accounts, make_entry):
        entries = [make_entry(chart["cash"], chart["sales"], Decimal("0"))]
        result = preview_year_end_closing(entries, accounts, None, FY2024)
        assert not result.ok
        assert result.carry_forward_balances == ()
