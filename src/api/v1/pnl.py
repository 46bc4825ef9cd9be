# src/api/v1/pnl.py

from typing import Optional
from fastapi import APIRouter, Depends
from src.core.models.request import LedgerProcessingRequest
from src.core.models.response import LedgerReport
from src.services.ledger_processor import LedgerProcessor
from src.logic.parser import TradeEventParser
from src.logic.sorter import TradeEventSorter
from src.logic.pnl_engine import PnLEngine
from src.logic.trade_applier import TradeApplier
from src.logic.error_reporter import ErrorReporter
from src.core.config.settings import settings
from src.core.enums.accounting_method import AccountingMethod

router = APIRouter()

def build_ledger_processor(method: Optional[AccountingMethod] = None) -> LedgerProcessor:
    """
    Provides a new LedgerProcessor with its own engine and error reporter,
    configured with the requested accounting method or the configured default.
    """
    error_reporter = ErrorReporter()
    engine = PnLEngine(method=method or settings.ACCOUNTING_METHOD)

    return LedgerProcessor(
        parser=TradeEventParser(error_reporter=error_reporter),
        sorter=TradeEventSorter(),
        engine=engine,
        trade_applier=TradeApplier(engine=engine, error_reporter=error_reporter),
        error_reporter=error_reporter
    )

def get_ledger_processor_factory():
    """Dependency returning the processor factory, so tests can override it."""
    return build_ledger_processor

@router.post(
    "/pnl/process",
    response_model=LedgerReport,
    summary="Replay trade events and report profit and loss",
    description="Accepts BUY, SELL and TRADE events in any order, replays them "
                "chronologically through a lot-based PnL engine using the requested "
                "or configured accounting method (FIFO, LIFO or SPECIFIC), and returns "
                "realized gains, open holdings, unrealized P&L and portfolio totals."
)
async def process_ledger_endpoint(
    request: LedgerProcessingRequest,
    processor_factory = Depends(get_ledger_processor_factory)
) -> LedgerReport:
    """
    API endpoint to replay a trade ledger.
    """
    processor = processor_factory(request.accounting_method)
    return processor.process(
        raw_events=request.events,
        market_values=request.market_values
    )
