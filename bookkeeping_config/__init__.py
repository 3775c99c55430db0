"""
bookkeeping_config -- YAML-backed configuration for the bookkeeping core.

Responsibility:
    Loads the configuration document (``defaults.yaml`` shipped with the
    package, or a caller-supplied file) into a frozen
    ``BookkeepingConfig``, and assigns account roles at creation time via
    ``create_account()``.

Architecture position:
    Configuration -- sits above ``bookkeeping_kernel`` and below
    ``bookkeeping_modules``. The kernel and the engines never import
    from this package.

Failure modes:
    - ``ConfigLoadError`` -- missing file, malformed YAML, missing keys.

Every successful load emits a ``BOOKKEEPING_CONFIG_TRACE`` log record with
the config id, version and checksum.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from bookkeeping_kernel.logging_config import get_logger
from bookkeeping_kernel.models.account import Account, AccountRole, AccountType
from bookkeeping_config.loader import compute_checksum, load_config_file, parse_config
from bookkeeping_config.schema import (
    BookkeepingConfig,
    ClosingSettings,
    CostOfSalesPattern,
    DepreciationSettings,
    NamePattern,
    RoleRule,
    SystemAccountLabels,
    UnknownAccountLabel,
)

logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def load_config(path: Path | str | None = None) -> BookkeepingConfig:
    """Load and validate a configuration file (the packaged defaults if None)."""
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = load_config_file(config_path)
    logger.info(
        "BOOKKEEPING_CONFIG_TRACE",
        extra={
            "trace_type": "BOOKKEEPING_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "role_rule_count": len(config.role_rules),
            "source": str(config_path),
        },
    )
    return config


@lru_cache(maxsize=1)
def get_default_config() -> BookkeepingConfig:
    """The packaged default configuration, loaded once."""
    return load_config(None)


def create_account(
    id: str,
    code: str,
    name: str,
    account_type: AccountType | str,
    role: AccountRole | str | None = None,
    config: BookkeepingConfig | None = None,
) -> Account:
    """
    Create an account, inferring its role from the configured rules.

    An explicit ``role`` always wins. Inference happens once, here; nothing
    downstream looks at account names for classification.
    """
    account_type = AccountType(account_type)
    if role is not None:
        resolved = AccountRole(role)
    else:
        resolved = (config or get_default_config()).infer_role(name, account_type)
    return Account(id=id, code=code, name=name, account_type=account_type, role=resolved)


__all__ = [
    "BookkeepingConfig",
    "ClosingSettings",
    "CostOfSalesPattern",
    "DepreciationSettings",
    "NamePattern",
    "RoleRule",
    "SystemAccountLabels",
    "UnknownAccountLabel",
    "DEFAULT_CONFIG_PATH",
    "compute_checksum",
    "create_account",
    "get_default_config",
    "load_config",
    "parse_config",
]
