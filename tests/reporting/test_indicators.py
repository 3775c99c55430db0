"""
Tests for the financial indicator calculator.

Covers profit figures, each ratio, undefined ratios and the rating table.
"""

from decimal import Decimal

import pytest

from bookkeeping_config.schema import CostOfSalesPattern
from bookkeeping_engines.aggregation import aggregate_ledger
from bookkeeping_kernel.models.account import Account, AccountType
from bookkeeping_kernel.models.opening_balance import OpeningBalance
from bookkeeping_modules.reporting import (
    IndicatorRating,
    ReportingConfig,
    calculate_financial_indicators,
    evaluate_indicator,
)


@pytest.fixture
def trading_snapshot(chart, accounts, make_entry):
    """Revenue 10000, cost of sales 6000, rent 2000, with a balance sheet."""
    openings = [
        OpeningBalance(chart["cash"].id, Decimal("5000")),
        OpeningBalance(chart["capital"].id, Decimal("-5000")),
    ]
    entries = [
        make_entry(chart["receivable"], chart["sales"], Decimal("10000")),
        make_entry(chart["purchases"], chart["payable"], Decimal("6000")),
        make_entry(chart["rent"], chart["cash"], Decimal("2000")),
        make_entry(chart["cash"], chart["loan"], Decimal("3000")),
    ]
    return aggregate_ledger(entries, accounts, openings)


class TestProfitFigures:
    """Revenue, cost of sales and profits."""

    def test_profits(self, trading_snapshot):
        result = calculate_financial_indicators(trading_snapshot)
        assert result.revenue == Decimal("10000")
        assert result.cost_of_sales == Decimal("6000")
        assert result.gross_profit == Decimal("4000")
        assert result.operating_profit == Decimal("2000")
        assert result.net_profit == Decimal("2000")

    def test_balance_figures(self, trading_snapshot):
        result = calculate_financial_indicators(trading_snapshot)
        # cash 5000 - 2000 + 3000, receivable 10000
        assert result.total_assets == Decimal("16000")
        assert result.current_assets == Decimal("16000")
        assert result.receivables == Decimal("10000")
        assert result.total_liabilities == Decimal("9000")
        assert result.current_liabilities == Decimal("6000")
        assert result.equity == Decimal("7000")

    def test_equity_includes_unclosed_net_income(self, chart, accounts, make_entry):
        openings = [
            OpeningBalance(chart["cash"].id, Decimal("1000")),
            OpeningBalance(chart["capital"].id, Decimal("-1000")),
        ]
        entries = [make_entry(chart["cash"], chart["sales"], Decimal("1000"))]
        result = calculate_financial_indicators(
            aggregate_ledger(entries, accounts, openings)
        )
        # Capital 1000 plus net income 1000, against cash 2000.
        assert result.equity == Decimal("2000")
        assert result.equity_ratio.value == Decimal("100")
        assert result.debt_equity_ratio.value == Decimal("0")

    def test_cost_of_sales_by_name_pattern(self, accounts, chart, make_entry):
        # No role; the configured pattern decides.
        cogs = Account("acc-cogs", "511", "Freight-in", AccountType.EXPENSE)
        config = ReportingConfig(
            cost_of_sales=CostOfSalesPattern(exact=("Freight-in",), contains=())
        )
        entries = [
            make_entry(chart["cash"], chart["sales"], Decimal("1000")),
            make_entry(cogs, chart["cash"], Decimal("400")),
        ]
        snapshot = aggregate_ledger(entries, [*accounts, cogs])
        result = calculate_financial_indicators(snapshot, config)
        assert result.cost_of_sales == Decimal("400")


class TestRatios:
    """Ratio values."""

    def test_margins(self, trading_snapshot):
        result = calculate_financial_indicators(trading_snapshot)
        assert result.gross_profit_margin.value == Decimal("40")
        assert result.operating_profit_margin.value == Decimal("20")
        assert result.net_profit_margin.value == Decimal("20")
        assert result.gross_profit_margin.unit == "%"

    def test_safety_ratios(self, trading_snapshot):
        result = calculate_financial_indicators(trading_snapshot)
        assert result.current_ratio.value.quantize(Decimal("0.01")) == Decimal("266.67")
        assert result.equity_ratio.value == Decimal("43.75")
        assert result.debt_equity_ratio.value.quantize(Decimal("0.01")) == Decimal("128.57")

    def test_efficiency_ratios(self, trading_snapshot):
        result = calculate_financial_indicators(trading_snapshot)
        assert result.total_asset_turnover.value == Decimal("0.625")
        assert result.receivables_turnover.value == Decimal("1")
        assert result.total_asset_turnover.unit == "times"

    def test_undefined_ratios_are_none(self, accounts):
        result = calculate_financial_indicators(aggregate_ledger([], accounts))
        for ratio in result.ratios:
            assert ratio.value is None
            assert ratio.rating is None

    def test_debt_equity_undefined_for_negative_equity(self, chart, accounts, make_entry):
        entries = [make_entry(chart["rent"], chart["loan"], Decimal("100"))]
        result = calculate_financial_indicators(aggregate_ledger(entries, accounts))
        assert result.equity == Decimal("-100")
        assert result.debt_equity_ratio.value is None


class TestRatings:
    """Rating thresholds."""

    @pytest.mark.parametrize(
        "key,value,expected",
        [
            ("gross_profit_margin", Decimal("30"), IndicatorRating.GOOD),
            ("gross_profit_margin", Decimal("20"), IndicatorRating.NORMAL),
            ("gross_profit_margin", Decimal("10"), IndicatorRating.WARNING),
            ("current_ratio", Decimal("250"), IndicatorRating.GOOD),
            ("current_ratio", Decimal("99"), IndicatorRating.WARNING),
            ("debt_equity_ratio", Decimal("80"), IndicatorRating.GOOD),
            ("debt_equity_ratio", Decimal("150"), IndicatorRating.NORMAL),
            ("debt_equity_ratio", Decimal("250"), IndicatorRating.WARNING),
            ("receivables_turnover", Decimal("12"), IndicatorRating.GOOD),
        ],
    )
    def test_evaluate_indicator(self, key, value, expected):
        assert evaluate_indicator(key, value) == expected

    def test_unknown_key_rates_normal(self):
        assert evaluate_indicator("mystery_ratio", Decimal("1")) == IndicatorRating.NORMAL

    def test_none_has_no_rating(self):
        assert evaluate_indicator("current_ratio", None) is None

    def test_ratings_attached(self, trading_snapshot):
        result = calculate_financial_indicators(trading_snapshot)
        assert result.gross_profit_margin.rating == IndicatorRating.GOOD
        assert result.current_ratio.rating == IndicatorRating.GOOD
        assert result.total_asset_turnover.rating == IndicatorRating.WARNING
