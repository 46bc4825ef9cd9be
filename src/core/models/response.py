# src/core/models/response.py

from datetime import datetime
from pydantic import BaseModel, Field

from src.core.enums.accounting_method import AccountingMethod
from src.core.models.pnl import SellPnLResult, HoldingSummary, UnrealizedPnL, PortfolioTotals
from src.core.models.trade_event import TradeEvent

class ErroredTradeEvent(BaseModel):
    """
    Represents a trade event that failed processing, along with the reason for failure.
    """
    event_id: str = Field(..., description="The ID of the event that failed.")
    error_reason: str = Field(..., description="The reason why the event could not be applied.")


class RealizedGain(BaseModel):
    """A realized P&L record produced by a SELL or TRADE event."""
    event_id: str
    symbol: str
    timestamp: datetime
    result: SellPnLResult


class LedgerReport(BaseModel):
    """
    Represents the output of replaying a trade ledger through the PnL engine.
    """
    accounting_method: AccountingMethod
    processed_events: list[TradeEvent] = Field(
        default_factory=list,
        description="Events applied to the engine, in processing order."
    )
    errored_events: list[ErroredTradeEvent] = Field(
        default_factory=list,
        description="Events that failed validation or were rejected by the engine."
    )
    realized_gains: list[RealizedGain] = Field(default_factory=list)
    holdings: dict[str, HoldingSummary] = Field(default_factory=dict)
    unrealized: dict[str, UnrealizedPnL] = Field(default_factory=dict)
    totals: PortfolioTotals
