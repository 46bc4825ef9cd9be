# src/core/models/trade_event.py

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, condecimal, ConfigDict, field_validator, model_validator

from src.core.enums.trade_type import TradeType

class TradeEvent(BaseModel):
    """
    Represents a single booked trade, as delivered by the order-execution system.
    Values are totals in the settlement currency, fees already applied.
    """
    event_id: str = Field(..., description="Unique identifier for the event")
    trade_type: TradeType = Field(..., description="BUY, SELL or TRADE")
    symbol: str = Field(..., min_length=1, description="Asset bought or sold; the asset given up for a TRADE")
    quantity: condecimal(gt=0) = Field(..., description="Quantity bought or sold")
    total_value: condecimal(ge=0) = Field(..., description="Total cost incl. fees (BUY) or proceeds after fees (SELL/TRADE)")
    timestamp: datetime = Field(..., description="Execution time (ISO format)")

    # --- TRADE only
    to_symbol: Optional[str] = Field(None, min_length=1, description="Asset received in a TRADE")
    to_quantity: Optional[condecimal(gt=0)] = Field(None, description="Quantity received in a TRADE")
    to_total_value: Optional[condecimal(ge=0)] = Field(None, description="Value of the received asset, used as its cost")

    lot_ids: Optional[list[str]] = Field(None, description="Lots to consume under the SPECIFIC method")

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        extra='ignore'
    )

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def check_trade_legs(self) -> "TradeEvent":
        if self.trade_type == TradeType.TRADE:
            missing = [
                name for name in ("to_symbol", "to_quantity", "to_total_value")
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(f"TRADE events require {', '.join(missing)}")
        return self
