"""
Configuration Loader (``bookkeeping_config.loader``).

Responsibility
--------------
Loads a YAML configuration document and parses it into the frozen
``bookkeeping_config.schema`` dataclasses.

Invariants enforced
-------------------
* Required keys must be present; no silent defaults for system-account
  labels or role rules.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing file, malformed YAML, missing keys or unknown enum values
  -> ``ConfigLoadError`` naming the source and the reason.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from bookkeeping_kernel.exceptions import ConfigLoadError
from bookkeeping_kernel.models.account import AccountRole, AccountType
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


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (possibly empty if the YAML is empty).
    Raises:
        ConfigLoadError: if the file is missing, unreadable, not valid
            YAML, or not a mapping at the top level.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigLoadError(str(path), f"cannot read file: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(str(path), f"invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigLoadError(str(path), "top-level document must be a mapping")
    return data


def _str_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def parse_name_pattern(data: dict[str, Any]) -> NamePattern:
    return NamePattern(
        exact=_str_tuple(data.get("exact")),
        contains=_str_tuple(data.get("contains")),
    )


def parse_cost_of_sales(data: dict[str, Any]) -> CostOfSalesPattern:
    return CostOfSalesPattern(
        exact=_str_tuple(data.get("exact")),
        contains=_str_tuple(data.get("contains")),
    )


def parse_role_rule(data: dict[str, Any]) -> RoleRule:
    return RoleRule(
        role=AccountRole(data["role"]),
        pattern=parse_name_pattern(data),
        account_types=tuple(AccountType(t) for t in data.get("account_types", ())),
    )


def parse_system_accounts(data: dict[str, Any]) -> SystemAccountLabels:
    return SystemAccountLabels(
        retained_earnings=_str_tuple(data["retained_earnings"]),
        depreciation_expense=_str_tuple(data["depreciation_expense"]),
        accumulated_depreciation=_str_tuple(data["accumulated_depreciation"]),
    )


def parse_unknown_account(data: dict[str, Any]) -> UnknownAccountLabel:
    defaults = UnknownAccountLabel()
    return UnknownAccountLabel(
        code=str(data.get("code", defaults.code)),
        name_format=str(data.get("name_format", defaults.name_format)),
    )


def parse_depreciation(data: dict[str, Any]) -> DepreciationSettings:
    defaults = DepreciationSettings()
    return DepreciationSettings(
        horizon_years=int(data.get("horizon_years", defaults.horizon_years)),
        query_horizon_years=int(
            data.get("query_horizon_years", defaults.query_horizon_years)
        ),
        entry_description_format=str(
            data.get("entry_description_format", defaults.entry_description_format)
        ),
    )


def parse_closing(data: dict[str, Any]) -> ClosingSettings:
    defaults = ClosingSettings()
    return ClosingSettings(
        profit_transfer_format=str(
            data.get("profit_transfer_format", defaults.profit_transfer_format)
        ),
        loss_transfer_format=str(
            data.get("loss_transfer_format", defaults.loss_transfer_format)
        ),
    )


def parse_config(data: dict[str, Any], source: str = "<dict>") -> BookkeepingConfig:
    """
    Parse a configuration mapping into a ``BookkeepingConfig``.

    Raises:
        ConfigLoadError: on missing required keys or invalid values.
    """
    try:
        config = BookkeepingConfig(
            config_id=str(data["config_id"]),
            version=int(data.get("version", 1)),
            system_accounts=parse_system_accounts(data["system_accounts"]),
            cost_of_sales=parse_cost_of_sales(data.get("cost_of_sales") or {}),
            role_rules=tuple(parse_role_rule(r) for r in data["role_rules"]),
            unknown_account=parse_unknown_account(data.get("unknown_account") or {}),
            depreciation=parse_depreciation(data.get("depreciation") or {}),
            closing=parse_closing(data.get("closing") or {}),
            checksum=compute_checksum(data),
        )
    except KeyError as exc:
        raise ConfigLoadError(source, f"missing required key {exc.args[0]!r}") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigLoadError(source, str(exc)) from exc

    if config.depreciation.horizon_years < 1:
        raise ConfigLoadError(source, "depreciation.horizon_years must be >= 1")
    if config.depreciation.query_horizon_years < 1:
        raise ConfigLoadError(source, "depreciation.query_horizon_years must be >= 1")
    return config


def load_config_file(path: Path) -> BookkeepingConfig:
    return parse_config(load_yaml_file(path), source=str(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
