"""
Module: bookkeeping_kernel.models.fixed_asset
Responsibility: Fixed asset register entry consumed by the depreciation engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class DepreciationMethod(str, Enum):
    STRAIGHT_LINE = "straight_line"
    DECLINING_BALANCE = "declining_balance"


class AssetCategory(str, Enum):
    BUILDING = "building"
    BUILDING_EQUIPMENT = "building_equipment"
    STRUCTURE = "structure"
    MACHINERY = "machinery"
    VEHICLE = "vehicle"
    TOOLS = "tools"
    SOFTWARE = "software"
    OTHER = "other"


@dataclass(frozen=True)
class FixedAsset:
    """
    A depreciable asset.

    ``residual_value`` defaults to the memorandum value of one currency unit.
    """

    id: str
    name: str
    acquisition_date: date
    acquisition_cost: Decimal
    useful_life_years: int
    method: DepreciationMethod = DepreciationMethod.STRAIGHT_LINE
    residual_value: Decimal = Decimal("1")
    category: AssetCategory = AssetCategory.OTHER
    account_id: str | None = None
    is_disposed: bool = False
    disposal_date: date | None = None
    disposal_amount: Decimal | None = None

    @property
    def effective_disposal_date(self) -> date | None:
        """Disposal date, only when the asset is flagged as disposed."""
        if self.is_disposed and self.disposal_date is not None:
            return self.disposal_date
        return None
