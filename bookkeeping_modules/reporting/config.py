"""
Reporting Configuration Schema.

Controls row filtering, cost-of-sales recognition for the indicator
calculator, and the labels used for synthetic unknown-account rows.
Values not set here fall back to the packaged ``BookkeepingConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Self

from bookkeeping_config import get_default_config
from bookkeeping_config.schema import (
    BookkeepingConfig,
    CostOfSalesPattern,
    UnknownAccountLabel,
)
from bookkeeping_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.
    """

    # Entity name shown on reports
    entity_name: str = "Company"

    # Whether to list accounts with no postings and no opening balance
    include_zero_balances: bool = False

    # Expense accounts without the cost_of_sales role are matched by name
    cost_of_sales: CostOfSalesPattern | None = None

    unknown_account: UnknownAccountLabel | None = None

    def __post_init__(self):
        if not self.entity_name:
            raise ValueError("entity_name cannot be empty")

    @property
    def cost_of_sales_pattern(self) -> CostOfSalesPattern:
        if self.cost_of_sales is not None:
            return self.cost_of_sales
        return get_default_config().cost_of_sales

    @property
    def unknown_account_label(self) -> UnknownAccountLabel:
        if self.unknown_account is not None:
            return self.unknown_account
        return get_default_config().unknown_account

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_bookkeeping_config(cls, config: BookkeepingConfig, **overrides) -> Self:
        """Take cost-of-sales and unknown-account labels from a loaded config."""
        return cls(
            cost_of_sales=config.cost_of_sales,
            unknown_account=config.unknown_account,
            **overrides,
        )

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        data = dict(data)
        if isinstance(data.get("cost_of_sales"), dict):
            cos = data["cost_of_sales"]
            data["cost_of_sales"] = CostOfSalesPattern(
                exact=tuple(cos.get("exact", ())),
                contains=tuple(cos.get("contains", ())),
            )
        if isinstance(data.get("unknown_account"), dict):
            data["unknown_account"] = UnknownAccountLabel(**data["unknown_account"])
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
