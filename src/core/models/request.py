# src/core/models/request.py

from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from src.core.enums.accounting_method import AccountingMethod
from src.core.models.pnl import MarketValue

class LedgerProcessingRequest(BaseModel):
    """
    Represents the input payload for the ledger processing API.
    """
    # Raw dictionaries so that one malformed event does not reject the whole request
    events: list[dict] = Field(
        ...,
        description="Trade events to replay (raw dictionaries, any order)."
    )
    market_values: dict[str, MarketValue] = Field(
        default_factory=dict,
        description="Current market valuation per symbol for unrealized P&L."
    )
    accounting_method: Optional[AccountingMethod] = Field(
        None,
        description="Overrides the configured ACCOUNTING_METHOD for this request."
    )

    @field_validator("market_values")
    @classmethod
    def normalize_market_value_symbols(cls, value: dict[str, MarketValue]) -> dict[str, MarketValue]:
        normalized: dict[str, MarketValue] = {}
        for symbol, market_value in value.items():
            key = symbol.strip().upper()
            if not key:
                raise ValueError("market value symbols must be non-empty")
            if key in normalized:
                raise ValueError(f"market value for '{key}' is given more than once")
            normalized[key] = market_value
        return normalized

    model_config = ConfigDict(
        json_schema_extra = {
            "example": {
                "events": [
                    {
                        "event_id": "buy_001",
                        "trade_type": "BUY",
                        "symbol": "BTC",
                        "quantity": "1.0",
                        "total_value": "10000",
                        "timestamp": "2024-01-01T00:00:00Z"
                    },
                    {
                        "event_id": "buy_002",
                        "trade_type": "BUY",
                        "symbol": "BTC",
                        "quantity": "1.0",
                        "total_value": "12000",
                        "timestamp": "2024-02-01T00:00:00Z"
                    },
                    {
                        "event_id": "sell_001",
                        "trade_type": "SELL",
                        "symbol": "BTC",
                        "quantity": "1.5",
                        "total_value": "19500",
                        "timestamp": "2024-03-01T00:00:00Z"
                    },
                    {
                        "event_id": "trade_001",
                        "trade_type": "TRADE",
                        "symbol": "BTC",
                        "quantity": "0.1",
                        "total_value": "1300",
                        "to_symbol": "ETH",
                        "to_quantity": "0.5",
                        "to_total_value": "1300",
                        "timestamp": "2024-03-05T00:00:00Z"
                    }
                ],
                "market_values": {
                    "BTC": {"total_value": "5200", "quantity": "0.4"},
                    "ETH": {"total_value": "1400", "quantity": "0.5"}
                },
                "accounting_method": "FIFO"
            }
        },
        extra='ignore'
    )
