"""
Year-end closing (``bookkeeping_modules.closing``).

Preview-only computation of closing balances, the profit transfer to
retained earnings and the next year's opening balances.
"""

from bookkeeping_modules.closing.models import (
    ClosingBalance,
    ClosingTransfer,
    YearEndClosingResult,
)
from bookkeeping_modules.closing.year_end import preview_year_end_closing

__all__ = [
    "ClosingBalance",
    "ClosingTransfer",
    "YearEndClosingResult",
    "preview_year_end_closing",
]
