"""
Fixed-asset flows (``bookkeeping_modules.assets``).

Draft depreciation journal generation and lookup of depreciation entries
already posted for a fiscal year.
"""

from bookkeeping_modules.assets.journals import (
    DepreciationJournalBatch,
    draft_entry_id,
    find_depreciation_journals,
    generate_depreciation_journals,
    has_depreciation_journals,
)

__all__ = [
    "DepreciationJournalBatch",
    "draft_entry_id",
    "find_depreciation_journals",
    "generate_depreciation_journals",
    "has_depreciation_journals",
]
