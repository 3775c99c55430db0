"""
Bookkeeping Kernel

Pure value types shared by every layer of the bookkeeping core:
- Chart of accounts, journal entries, opening balances, fixed assets
- Fiscal calendar arithmetic
- Issue/result protocol and typed exceptions
- Structured logging and an injectable clock
"""

__version__ = "0.1.0"
