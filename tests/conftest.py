"""
Pytest fixtures for the bookkeeping core test suite.

Provides:
- Structured logging configured once per session, with log capture
- A deterministic clock
- A small chart of accounts with roles assigned by the default config
- An entry factory with unique ids and monotonically increasing
  creation timestamps
"""

import json
import logging
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal
from io import StringIO

import pytest

from bookkeeping_config import create_account, get_default_config
from bookkeeping_kernel.domain.clock import DeterministicClock
from bookkeeping_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from bookkeeping_kernel.models.fiscal_year import FiscalCalendar
from bookkeeping_kernel.models.journal import JournalEntry


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture bookkeeping logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            aggregate_ledger(...)
            logs = captured_logs()
            assert any(r["message"] == "ledger_aggregated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("bookkeeping")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2024, 12, 31, 18, 0, tzinfo=UTC))


@pytest.fixture
def calendar():
    return FiscalCalendar(start_month=1, start_day=1)


@pytest.fixture
def config():
    return get_default_config()


@pytest.fixture
def chart(config):
    """Chart of accounts keyed by short name. Roles come from the config."""
    rows = [
        ("cash", "101", "Cash", "asset"),
        ("receivable", "111", "Accounts Receivable", "asset"),
        ("inventory", "121", "Inventory", "asset"),
        ("prepaid", "131", "Prepaid Expenses", "asset"),
        ("equipment", "151", "Equipment", "asset"),
        ("accumulated", "159", "Accumulated Depreciation", "asset"),
        ("payable", "201", "Accounts Payable", "liability"),
        ("accrued", "211", "Accrued Expenses", "liability"),
        ("loan", "251", "Long-term Borrowing", "liability"),
        ("capital", "301", "Capital", "equity"),
        ("retained", "311", "Retained Earnings", "equity"),
        ("sales", "401", "Sales", "revenue"),
        ("purchases", "501", "Purchases", "expense"),
        ("depreciation", "521", "Depreciation Expense", "expense"),
        ("rent", "531", "Rent", "expense"),
    ]
    return {
        key: create_account(f"acc-{key}", code, name, account_type, config=config)
        for key, code, name, account_type in rows
    }


@pytest.fixture
def accounts(chart):
    return list(chart.values())


@pytest.fixture
def make_entry():
    """
    Factory for journal entries.

    ``make_entry(debit_account, credit_account, amount, on=date(...))``
    accepts Account objects or raw ids. Every call gets a fresh id and a
    later ``created_at`` than the previous one.
    """
    counter = {"n": 0}
    base = datetime(2024, 1, 1, tzinfo=UTC)

    def _make(debit, credit, amount, on=date(2024, 6, 1), **kwargs):
        counter["n"] += 1
        n = counter["n"]
        return JournalEntry(
            id=kwargs.pop("id", f"je-{n:04d}"),
            date=on,
            debit_account_id=getattr(debit, "id", debit),
            credit_account_id=getattr(credit, "id", credit),
            amount=Decimal(amount) if isinstance(amount, str) else amount,
            created_at=kwargs.pop("created_at", base + timedelta(seconds=n)),
            **kwargs,
        )

    return _make
