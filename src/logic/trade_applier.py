# src/logic/trade_applier.py

import logging
from typing import NamedTuple, Protocol, Optional

from src.core.enums.trade_type import TradeType
from src.core.exceptions import PnLEngineError
from src.core.models.pnl import SellPnLResult
from src.core.models.trade_event import TradeEvent
from src.logic.pnl_engine import PnLEngine
from src.logic.error_reporter import ErrorReporter

logger = logging.getLogger(__name__)

class TradeEventHandler(Protocol):
    """
    Protocol (interface) for applying one kind of trade event to the engine.
    """
    def apply(self, event: TradeEvent, engine: PnLEngine) -> Optional[SellPnLResult]:
        """
        Records the event in the engine. Returns the realized result for
        events that dispose of an asset, None otherwise.
        """
        ...


class BuyHandler:
    """Opens a lot named after the event."""
    def apply(self, event: TradeEvent, engine: PnLEngine) -> Optional[SellPnLResult]:
        engine.record_buy(
            event.symbol,
            event.quantity,
            event.total_value,
            timestamp=event.timestamp,
            lot_id=event.event_id
        )
        return None


class SellHandler:
    """Realizes P&L on a sale; total_value is the proceeds after fees."""
    def apply(self, event: TradeEvent, engine: PnLEngine) -> Optional[SellPnLResult]:
        return engine.record_sell(
            event.symbol,
            event.quantity,
            event.total_value,
            timestamp=event.timestamp,
            lot_ids=event.lot_ids
        )


class TradeHandler:
    """Sells symbol and opens a to_symbol lot named after the event."""
    def apply(self, event: TradeEvent, engine: PnLEngine) -> Optional[SellPnLResult]:
        return engine.record_trade(
            event.symbol,
            event.quantity,
            event.to_symbol,
            event.to_quantity,
            event.total_value,
            event.to_total_value,
            timestamp=event.timestamp,
            to_lot_id=event.event_id,
            lot_ids=event.lot_ids
        )


class AppliedEvent(NamedTuple):
    """Outcome of applying one event: whether the engine accepted it, and its sell result."""
    applied: bool
    result: Optional[SellPnLResult] = None


class TradeApplier:
    """
    Applies trade events to a PnLEngine using the handler for each trade type.
    Engine rejections are reported to the ErrorReporter instead of propagating.
    """

    def __init__(self, engine: PnLEngine, error_reporter: ErrorReporter):
        self._engine = engine
        self._error_reporter = error_reporter
        self._handlers: dict[TradeType, TradeEventHandler] = {
            TradeType.BUY: BuyHandler(),
            TradeType.SELL: SellHandler(),
            TradeType.TRADE: TradeHandler(),
        }

    def apply_event(self, event: TradeEvent) -> AppliedEvent:
        """
        Applies a single event. The outcome carries the sell result for SELL and
        TRADE events; rejected events come back with applied=False.
        """
        handler = self._handlers[event.trade_type]
        try:
            return AppliedEvent(applied=True, result=handler.apply(event, self._engine))
        except PnLEngineError as e:
            logger.warning(f"TradeApplier: Event {event.event_id} rejected: {e}")
            self._error_reporter.add_error(event.event_id, str(e))
            return AppliedEvent(applied=False)
