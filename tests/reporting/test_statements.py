"""
Tests for the trial balance, income statement and balance sheet builders.

All tests are pure: snapshots come straight from ``aggregate_ledger`` with
in-memory entries.
"""

from datetime import date
from decimal import Decimal

from bookkeeping_engines.aggregation import aggregate_ledger
from bookkeeping_kernel.domain.results import IssueCode
from bookkeeping_kernel.models.account import AccountType
from bookkeeping_kernel.models.fiscal_year import FiscalCalendar
from bookkeeping_kernel.models.opening_balance import OpeningBalance
from bookkeeping_modules.reporting import (
    ReportingConfig,
    ReportType,
    build_balance_sheet,
    build_income_statement,
    build_trial_balance,
    compute_net_income,
    default_report_window,
    render_to_dict,
)


def _scenario_b(chart, make_entry):
    openings = [
        OpeningBalance(chart["cash"].id, Decimal("500")),
        OpeningBalance(chart["capital"].id, Decimal("-500")),
    ]
    entries = [make_entry(chart["rent"], chart["cash"], Decimal("200"))]
    return entries, openings


class TestTrialBalance:
    """Trial balance rows and totals."""

    def test_single_sale(self, chart, accounts, make_entry):
        entries = [make_entry(chart["cash"], chart["sales"], Decimal("1000"))]
        report = build_trial_balance(aggregate_ledger(entries, accounts))

        cash = report.line_for(chart["cash"].id)
        sales = report.line_for(chart["sales"].id)
        assert cash.debit_balance == Decimal("1000")
        assert cash.credit_balance == 0
        assert sales.credit_balance == Decimal("1000")
        assert sales.debit_balance == 0
        assert report.total_debits == report.total_credits == Decimal("1000")
        assert report.is_balanced
        assert report.metadata.report_type == ReportType.TRIAL_BALANCE

    def test_untouched_accounts_omitted_by_default(self, chart, accounts, make_entry):
        entries = [make_entry(chart["cash"], chart["sales"], 1000)]
        report = build_trial_balance(aggregate_ledger(entries, accounts))
        assert {line.account_id for line in report.lines} == {
            chart["cash"].id,
            chart["sales"].id,
        }

    def test_include_zero_balances(self, chart, accounts, make_entry):
        entries = [make_entry(chart["cash"], chart["sales"], 1000)]
        config = ReportingConfig(include_zero_balances=True)
        report = build_trial_balance(aggregate_ledger(entries, accounts), config)
        assert len(report.lines) == len(accounts)

    def test_sections_follow_type_order(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["rent"], chart["cash"], 100),
            make_entry(chart["cash"], chart["sales"], 1000),
            make_entry(chart["cash"], chart["loan"], 500),
        ]
        report = build_trial_balance(aggregate_ledger(entries, accounts))
        assert [s.account_type for s in report.sections] == [
            AccountType.ASSET,
            AccountType.LIABILITY,
            AccountType.REVENUE,
            AccountType.EXPENSE,
        ]

    def test_unknown_account_row(self, chart, accounts, make_entry):
        entries = [
            make_entry("missing-account-id", chart["sales"], Decimal("300")),
            make_entry(chart["cash"], chart["sales"], Decimal("700")),
        ]
        report = build_trial_balance(aggregate_ledger(entries, accounts))

        unknown = report.line_for("missing-account-id")
        assert unknown.is_unknown
        assert unknown.account_code == "???"
        assert unknown.debit_total == Decimal("300")
        assert report.total_debits == report.total_credits
        assert report.is_balanced
        assert report.has_code(IssueCode.UNKNOWN_ACCOUNT)

    def test_date_filtered_subset_balances(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["cash"], chart["sales"], 1000, on=date(2024, 1, 10)),
            make_entry(chart["rent"], chart["cash"], 300, on=date(2024, 2, 10)),
            make_entry(chart["purchases"], chart["payable"], 450, on=date(2024, 3, 10)),
        ]
        snapshot = aggregate_ledger(
            entries, accounts, period_start=date(2024, 2, 1), period_end=date(2024, 2, 29)
        )
        report = build_trial_balance(snapshot)
        assert report.total_debits == report.total_credits == Decimal("300")

    def test_empty_ledger_is_balanced(self, accounts):
        report = build_trial_balance(aggregate_ledger([], accounts))
        assert report.is_balanced
        assert report.sections == ()

    def test_refused_snapshot_yields_empty_report(self, chart, accounts, make_entry):
        entries = [make_entry(chart["cash"], chart["sales"], Decimal("-1"))]
        report = build_trial_balance(aggregate_ledger(entries, accounts))
        assert not report.ok
        assert report.lines == ()


class TestIncomeStatement:
    """Revenue, expenses and net income."""

    def test_net_income(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["cash"], chart["sales"], Decimal("5000")),
            make_entry(chart["purchases"], chart["cash"], Decimal("2000")),
            make_entry(chart["rent"], chart["cash"], Decimal("1000")),
        ]
        report = build_income_statement(aggregate_ledger(entries, accounts))
        assert report.total_revenue == Decimal("5000")
        assert report.total_expenses == Decimal("3000")
        assert report.net_income == Decimal("2000")
        assert [line.account_code for line in report.expenses.lines] == ["501", "531"]

    def test_sales_return_reduces_revenue(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["cash"], chart["sales"], 1000),
            make_entry(chart["sales"], chart["cash"], 200),
        ]
        report = build_income_statement(aggregate_ledger(entries, accounts))
        assert report.total_revenue == Decimal("800")

    def test_zero_lines_omitted(self, chart, accounts, make_entry):
        entries = [make_entry(chart["cash"], chart["sales"], 1000)]
        report = build_income_statement(aggregate_ledger(entries, accounts))
        assert report.expenses.lines == ()
        assert report.total_expenses == 0


class TestBalanceSheet:
    """Assets == liabilities + equity (including net income)."""

    def test_opening_balances_and_expense(self, chart, accounts, make_entry):
        entries, openings = _scenario_b(chart, make_entry)
        snapshot = aggregate_ledger(entries, accounts, openings)

        assert snapshot.get(chart["cash"].id).display_balance == Decimal("300")
        assert compute_net_income(snapshot) == Decimal("-200")

        report = build_balance_sheet(snapshot)
        assert report.total_assets == Decimal("300")
        assert report.equity.total == Decimal("500")
        assert report.net_income == Decimal("-200")
        assert report.total_equity == Decimal("300")
        assert report.total_liabilities_and_equity == Decimal("300")
        assert report.is_balanced

    def test_unknown_rows_listed_with_assets(self, chart, accounts, make_entry):
        entries = [make_entry("missing", chart["sales"], 400)]
        report = build_balance_sheet(aggregate_ledger(entries, accounts))
        assert [line.account_id for line in report.assets.lines] == ["missing"]
        assert report.is_balanced

    def test_contra_asset_reduces_assets(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["equipment"], chart["cash"], 1000),
            make_entry(chart["depreciation"], chart["accumulated"], 200),
        ]
        openings = [
            OpeningBalance(chart["cash"].id, Decimal("1000")),
            OpeningBalance(chart["capital"].id, Decimal("-1000")),
        ]
        report = build_balance_sheet(aggregate_ledger(entries, accounts, openings))
        assert report.total_assets == Decimal("800")
        assert report.is_balanced


class TestReportWindowAndRendering:
    """Report helpers."""

    def test_default_report_window(self):
        calendar = FiscalCalendar(start_month=4, start_day=1)
        window = default_report_window(date(2025, 2, 14), calendar)
        assert window.start == date(2024, 4, 1)
        assert window.end == date(2025, 3, 31)

    def test_render_to_dict(self, chart, accounts, make_entry):
        entries = [make_entry(chart["cash"], chart["sales"], Decimal("1000"))]
        config = ReportingConfig(entity_name="Acme")
        report = build_trial_balance(aggregate_ledger(entries, accounts), config)
        rendered = render_to_dict(report)

        assert rendered["metadata"]["entity_name"] == "Acme"
        assert rendered["metadata"]["report_type"] == "trial_balance"
        assert rendered["total_debits"] == "1000"
        assert rendered["sections"][0]["account_type"] == "asset"
        assert rendered["is_balanced"] is True
        assert rendered["issues"] == []
