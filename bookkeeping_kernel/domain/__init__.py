"""
Pure domain layer.

Result types, validation helpers and the clock abstraction. No I/O
except SystemClock.
"""

from bookkeeping_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from bookkeeping_kernel.domain.results import (
    Issue,
    IssueCarrier,
    IssueCode,
    IssueKind,
    Severity,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Issue",
    "IssueCarrier",
    "IssueCode",
    "IssueKind",
    "Severity",
]
