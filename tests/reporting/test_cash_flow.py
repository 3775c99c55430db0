"""
Tests for the indirect-method cash flow reconciler.

Covers:
- Cash/revenue/expense-only ledgers (operating == net profit)
- Bucket placement: receivables, payables, fixed assets, borrowing, capital
- Depreciation add-back
- The reconciliation contract on every statement
"""

from datetime import date
from decimal import Decimal

from bookkeeping_engines.aggregation import aggregate_ledger
from bookkeeping_kernel.models.opening_balance import OpeningBalance
from bookkeeping_modules.reporting import (
    CashFlowBucket,
    build_cash_flow_statement,
    classify_account,
    reconcile_cash_flow,
)

PERIOD_START = date(2024, 1, 1)
PERIOD_END = date(2024, 12, 31)


def _reconcile(entries, accounts, openings=None):
    return reconcile_cash_flow(
        entries, accounts, openings, period_start=PERIOD_START, period_end=PERIOD_END
    )


def _assert_contract(report):
    assert report.total_cash_flow == report.ending_cash - report.beginning_cash
    assert report.total_cash_flow == (
        report.operating.subtotal + report.investing.subtotal + report.financing.subtotal
    )
    assert report.reconciles


class TestClassification:
    """Each balance-sheet account falls in exactly one bucket."""

    def test_roles_map_to_buckets(self, chart, accounts):
        snapshot = aggregate_ledger([], accounts)
        buckets = {r.account_id: classify_account(r) for r in snapshot.rows}
        assert buckets[chart["cash"].id] == CashFlowBucket.CASH
        assert buckets[chart["receivable"].id] == CashFlowBucket.RECEIVABLE
        assert buckets[chart["inventory"].id] == CashFlowBucket.INVENTORY
        assert buckets[chart["prepaid"].id] == CashFlowBucket.OTHER_CURRENT_ASSET
        assert buckets[chart["equipment"].id] == CashFlowBucket.FIXED_ASSET
        assert buckets[chart["payable"].id] == CashFlowBucket.PAYABLE
        assert buckets[chart["accrued"].id] == CashFlowBucket.OTHER_CURRENT_LIABILITY
        assert buckets[chart["loan"].id] == CashFlowBucket.BORROWING
        assert buckets[chart["capital"].id] == CashFlowBucket.CAPITAL
        assert buckets[chart["retained"].id] == CashFlowBucket.UNCLASSIFIED
        assert buckets[chart["accumulated"].id] == CashFlowBucket.UNCLASSIFIED
        assert buckets[chart["sales"].id] is None
        assert buckets[chart["rent"].id] is None


class TestOperatingOnly:
    """Ledgers touching only cash, revenue and expense."""

    def test_operating_equals_net_profit(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["cash"], chart["sales"], Decimal("5000")),
            make_entry(chart["rent"], chart["cash"], Decimal("1200")),
        ]
        report = _reconcile(entries, accounts)

        assert report.operating.net_profit == Decimal("3800")
        assert report.operating.subtotal == Decimal("3800")
        assert report.investing.subtotal == 0
        assert report.financing.subtotal == 0
        assert report.total_cash_flow == Decimal("3800")
        assert report.residual_adjustment == 0
        _assert_contract(report)

    def test_empty_period(self, accounts):
        report = _reconcile([], accounts)
        assert report.total_cash_flow == 0
        _assert_contract(report)


class TestWorkingCapital:
    """Receivable, inventory and payable movements."""

    def test_credit_sale_is_not_cash(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["receivable"], chart["sales"], Decimal("3000")),
            make_entry(chart["cash"], chart["receivable"], Decimal("1000")),
        ]
        report = _reconcile(entries, accounts)
        assert report.operating.net_profit == Decimal("3000")
        assert report.operating.receivable_change == Decimal("-2000")
        assert report.operating.subtotal == Decimal("1000")
        assert report.residual_adjustment == 0
        _assert_contract(report)

    def test_payable_increase_is_inflow(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["inventory"], chart["payable"], Decimal("800")),
            make_entry(chart["payable"], chart["cash"], Decimal("300")),
        ]
        report = _reconcile(entries, accounts)
        assert report.operating.inventory_change == Decimal("-800")
        assert report.operating.payable_change == Decimal("500")
        assert report.operating.subtotal == Decimal("-300")
        _assert_contract(report)

    def test_other_current_items(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["prepaid"], chart["cash"], Decimal("120")),
            make_entry(chart["rent"], chart["accrued"], Decimal("50")),
        ]
        report = _reconcile(entries, accounts)
        assert report.operating.other_current_asset_change == Decimal("-120")
        assert report.operating.other_current_liability_change == Decimal("50")
        assert report.residual_adjustment == 0
        _assert_contract(report)


class TestInvestingAndFinancing:
    """Fixed assets, borrowing and capital."""

    def test_fixed_asset_purchase(self, chart, accounts, make_entry):
        entries = [make_entry(chart["equipment"], chart["cash"], Decimal("4000"))]
        report = _reconcile(entries, accounts)
        assert report.investing.fixed_asset_purchase == Decimal("-4000")
        assert report.investing.fixed_asset_sale == 0
        assert report.investing.subtotal == Decimal("-4000")
        assert report.operating.subtotal == 0
        _assert_contract(report)

    def test_fixed_asset_sale(self, chart, accounts, make_entry):
        openings = [
            OpeningBalance(chart["equipment"].id, Decimal("4000")),
            OpeningBalance(chart["capital"].id, Decimal("-4000")),
        ]
        entries = [make_entry(chart["cash"], chart["equipment"], Decimal("1500"))]
        report = _reconcile(entries, accounts, openings)
        assert report.investing.fixed_asset_sale == Decimal("1500")
        _assert_contract(report)

    def test_borrowing_and_repayment(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["cash"], chart["loan"], Decimal("10000"), on=date(2024, 2, 1)),
        ]
        report = _reconcile(entries, accounts)
        assert report.financing.borrowing == Decimal("10000")
        assert report.financing.subtotal == Decimal("10000")
        _assert_contract(report)

        openings = [
            OpeningBalance(chart["cash"].id, Decimal("10000")),
            OpeningBalance(chart["loan"].id, Decimal("-10000")),
        ]
        entries = [make_entry(chart["loan"], chart["cash"], Decimal("2500"))]
        report = _reconcile(entries, accounts, openings)
        assert report.financing.repayment == Decimal("-2500")
        assert report.beginning_cash == Decimal("10000")
        assert report.ending_cash == Decimal("7500")
        _assert_contract(report)

    def test_capital_increase(self, chart, accounts, make_entry):
        entries = [make_entry(chart["cash"], chart["capital"], Decimal("1000000"))]
        report = _reconcile(entries, accounts)
        assert report.financing.capital_increase == Decimal("1000000")
        _assert_contract(report)

    def test_capital_decrease_goes_to_other_financing(self, chart, accounts, make_entry):
        openings = [
            OpeningBalance(chart["cash"].id, Decimal("1000")),
            OpeningBalance(chart["capital"].id, Decimal("-1000")),
        ]
        entries = [make_entry(chart["capital"], chart["cash"], Decimal("400"))]
        report = _reconcile(entries, accounts, openings)
        assert report.financing.capital_increase == 0
        assert report.financing.other_financing == Decimal("-400")
        _assert_contract(report)


class TestDepreciationAddBack:
    """Non-cash depreciation is added back to operating cash."""

    def test_depreciation_added_back(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["cash"], chart["sales"], Decimal("2000")),
            make_entry(chart["depreciation"], chart["accumulated"], Decimal("500")),
        ]
        report = _reconcile(entries, accounts)
        assert report.operating.net_profit == Decimal("1500")
        assert report.operating.depreciation == Decimal("500")
        assert report.operating.subtotal == Decimal("2000")
        assert report.residual_adjustment == 0
        _assert_contract(report)


class TestBeginningSnapshot:
    """Entries before the period land in the beginning balances."""

    def test_prior_entries_in_beginning_cash(self, chart, accounts, make_entry):
        entries = [
            make_entry(chart["cash"], chart["capital"], Decimal("900"), on=date(2023, 6, 1)),
            make_entry(chart["cash"], chart["sales"], Decimal("100"), on=date(2024, 6, 1)),
        ]
        report = _reconcile(entries, accounts)
        assert report.beginning_cash == Decimal("900")
        assert report.ending_cash == Decimal("1000")
        assert report.financing.subtotal == 0
        assert report.operating.net_profit == Decimal("100")
        _assert_contract(report)

    def test_build_from_snapshots(self, chart, accounts, make_entry):
        entries = [make_entry(chart["cash"], chart["sales"], Decimal("100"))]
        beginning = aggregate_ledger([], accounts)
        ending = aggregate_ledger(entries, accounts)
        report = build_cash_flow_statement(beginning, ending, Decimal("100"))
        assert report.total_cash_flow == Decimal("100")
        _assert_contract(report)

    def test_refused_snapshot(self, chart, accounts, make_entry):
        entries = [make_entry(chart["cash"], chart["sales"], Decimal("0"))]
        report = _reconcile(entries, accounts)
        assert not report.ok
        assert report.total_cash_flow == 0
