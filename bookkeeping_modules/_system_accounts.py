"""
Shared lookup of system accounts for module flows.

Used by bookkeeping_modules/assets and bookkeeping_modules/closing. An
account is found by role first; accounts created without a role fall back
to the configured label set (exact name, case-insensitive).

Architecture: Modules layer. Imports only from bookkeeping_kernel and
bookkeeping_config.
"""

from __future__ import annotations

from collections.abc import Sequence

from bookkeeping_config.schema import BookkeepingConfig
from bookkeeping_kernel.models.account import Account, AccountRole


def find_system_account(
    accounts: Sequence[Account],
    role: AccountRole,
    config: BookkeepingConfig,
) -> Account | None:
    """First account carrying ``role``, else the first with a matching label."""
    for account in accounts:
        if account.role == role:
            return account
    labels = {label.strip().casefold() for label in config.system_accounts.labels_for(role)}
    for account in accounts:
        if account.role is None and account.name.strip().casefold() in labels:
            return account
    return None
