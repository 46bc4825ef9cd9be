# src/core/models/pnl.py

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, condecimal, ConfigDict


class MarketValue(BaseModel):
    """
    Current market valuation of a holding, supplied by the caller at query time.
    The engine never stores prices.
    """
    total_value: condecimal(ge=0) = Field(..., description="Current value of the whole holding")
    quantity: condecimal(ge=0) = Field(..., description="Quantity the valuation refers to")

    model_config = ConfigDict(populate_by_name=True)


class SellPnLDetail(BaseModel):
    """Portion of a single lot consumed by a sell, as needed for tax-lot reporting."""
    lot_id: str = Field(..., description="Identifier of the consumed lot")
    quantity: Decimal = Field(..., description="Quantity taken from the lot")
    cost_basis: Decimal = Field(..., description="unit_cost * quantity")
    sale_value: Decimal = Field(..., description="Quantity-proportional share of the sale proceeds")
    pnl: Decimal = Field(..., description="sale_value - cost_basis")
    original_purchase_timestamp: datetime = Field(..., description="Acquisition time of the lot")


class SellPnLResult(BaseModel):
    """Outcome of one sell (or the sell leg of a trade)."""
    total_quantity_sold: Decimal
    total_cost_basis: Decimal
    total_sale_value: Decimal
    total_pnl: Decimal
    details: list[SellPnLDetail] = Field(default_factory=list)


class UnrealizedPnL(BaseModel):
    """Unrealized snapshot of one symbol against a supplied market value."""
    quantity: Decimal
    avg_cost_basis: Decimal
    total_cost_basis: Decimal
    current_value: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_percent: Decimal


class PortfolioTotals(BaseModel):
    """Realized and unrealized figures aggregated over every valued symbol."""
    realized_pnl: Decimal
    unrealized_pnl: Decimal
    total_pnl: Decimal
    total_current_value: Decimal
    total_cost_basis: Decimal
    total_return_percent: Decimal


class LotSnapshot(BaseModel):
    """Read-only copy of an open lot."""
    lot_id: str
    quantity: Decimal
    unit_cost: Decimal
    timestamp: datetime


class HoldingSummary(BaseModel):
    """Aggregate view of one symbol's open lots."""
    quantity: Decimal
    avg_cost_basis: Decimal
    total_cost_basis: Decimal
    lots: list[LotSnapshot] = Field(default_factory=list)
