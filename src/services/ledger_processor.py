# src/services/ledger_processor.py

import logging
from typing import Any, Mapping

from src.core.models.trade_event import TradeEvent
from src.core.models.response import LedgerReport, RealizedGain
from src.logic.parser import TradeEventParser
from src.logic.sorter import TradeEventSorter
from src.logic.pnl_engine import PnLEngine
from src.logic.trade_applier import TradeApplier
from src.logic.error_reporter import ErrorReporter

logger = logging.getLogger(__name__)

class LedgerProcessor:
    """
    Orchestrates the replay of a trade ledger through the PnL engine.
    It combines parsing, sorting, applying events and valuation.
    """
    def __init__(
        self,
        parser: TradeEventParser,
        sorter: TradeEventSorter,
        engine: PnLEngine,
        trade_applier: TradeApplier,
        error_reporter: ErrorReporter
    ):
        # The parser and applier share error_reporter
        self._parser = parser
        self._sorter = sorter
        self._engine = engine
        self._trade_applier = trade_applier
        self._error_reporter = error_reporter

    def process(
        self,
        raw_events: list[dict[str, Any]],
        market_values: Mapping[str, Any]
    ) -> LedgerReport:
        """
        Parses, orders and applies the events, then values the resulting holdings
        against market_values. Events that fail are listed in the report's
        errored_events and leave the engine untouched.
        """
        logger.info(f"Starting ledger processing. Events: {len(raw_events)}, Method: {self._engine.method.value}")

        try:
            # 1. Parse
            parsed_events = self._parser.parse_events(raw_events)
            logger.debug(f"Parsed {len(parsed_events)} events. Errors reported to central reporter.")

            # 2. Order chronologically
            sorted_events = self._sorter.sort_events(parsed_events)

            # 3. Apply
            processed_events: list[TradeEvent] = []
            realized_gains: list[RealizedGain] = []
            for event in sorted_events:
                outcome = self._trade_applier.apply_event(event)
                if not outcome.applied:
                    continue
                processed_events.append(event)
                if outcome.result is not None:
                    realized_gains.append(RealizedGain(
                        event_id=event.event_id,
                        symbol=event.symbol.strip().upper(),
                        timestamp=event.timestamp,
                        result=outcome.result
                    ))

            # 4. Value
            report = LedgerReport(
                accounting_method=self._engine.method,
                processed_events=processed_events,
                errored_events=self._error_reporter.get_errors(),
                realized_gains=realized_gains,
                holdings=self._engine.get_all_holdings(),
                unrealized=self._engine.compute_unrealized_pnl(market_values),
                totals=self._engine.get_portfolio_totals(market_values)
            )
        finally:
            # The reporter is shared with the parser and applier; reset it for the next run.
            self._error_reporter.clear()

        logger.info(f"Finished ledger processing. Applied {len(processed_events)} events, {len(report.errored_events)} errors reported. Realized P&L: {report.totals.realized_pnl}")
        return report
