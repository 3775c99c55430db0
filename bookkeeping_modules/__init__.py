"""
bookkeeping_modules -- business flows built on the engines.

Subpackages:
    reporting -- trial balance, statements, cash flow, indicators, trend.
    assets    -- depreciation journal drafts and lookup.
    closing   -- year-end closing preview and carry-forward.

Modules import from bookkeeping_kernel, bookkeeping_engines and
bookkeeping_config. Nothing here performs I/O or posts entries.
"""
