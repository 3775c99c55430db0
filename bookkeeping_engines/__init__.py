"""
Module: bookkeeping_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines: the
    ledger aggregator with its ledgers and sub-account balance list, the
    tax calculator and the depreciation engine.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import bookkeeping_kernel (and sibling engine modules).
    MUST NOT import bookkeeping_modules or bookkeeping_config.

Invariants enforced:
    - Purity: engines never read the wall clock. Dates are passed in.
    - Decimal-only arithmetic: floats are rejected at the boundary.
    - Determinism: identical inputs always produce identical outputs.

Every public entry point is wrapped with ``@traced_engine`` (see
``bookkeeping_engines.tracer``) and emits a BOOKKEEPING_ENGINE_TRACE log
record with the engine name, version, input fingerprint and duration.
"""

from bookkeeping_engines.aggregation import (
    AccountLedger,
    AccountTotals,
    LedgerLine,
    LedgerSnapshot,
    SubAccountBalance,
    SubAccountBalanceReport,
    aggregate_ledger,
    general_ledger,
    sub_account_balances,
    sub_account_ledger,
)
from bookkeeping_engines.depreciation import (
    DepreciationSchedule,
    DepreciationSlice,
    SwitchPolicy,
    calculate_depreciation_schedule,
    declining_balance_rate,
    depreciation_months,
    guarantee_rate,
    revised_rate,
)
from bookkeeping_engines.tax import (
    TaxCalculation,
    TaxCalculationResult,
    TaxCalculator,
    TaxSummary,
    calculate_tax,
    calculate_tax_amount,
    calculate_total_amount,
    extract_base_amount,
    summarize_tax,
)
from bookkeeping_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "AccountLedger",
    "AccountTotals",
    "LedgerLine",
    "LedgerSnapshot",
    "SubAccountBalance",
    "SubAccountBalanceReport",
    "aggregate_ledger",
    "general_ledger",
    "sub_account_balances",
    "sub_account_ledger",
    "DepreciationSchedule",
    "DepreciationSlice",
    "SwitchPolicy",
    "calculate_depreciation_schedule",
    "declining_balance_rate",
    "depreciation_months",
    "guarantee_rate",
    "revised_rate",
    "TaxCalculation",
    "TaxCalculationResult",
    "TaxCalculator",
    "TaxSummary",
    "calculate_tax",
    "calculate_tax_amount",
    "calculate_total_amount",
    "extract_base_amount",
    "summarize_tax",
    "compute_input_fingerprint",
    "traced_engine",
]
