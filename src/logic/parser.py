# src/logic/parser.py

import logging
from typing import Any
from pydantic import ValidationError, TypeAdapter

from src.core.models.trade_event import TradeEvent
from src.logic.error_reporter import ErrorReporter

logger = logging.getLogger(__name__)

UNKNOWN_EVENT_ID = "UNKNOWN_EVENT_ID"

class TradeEventParser:
    """
    Parses raw trade event dictionaries into validated TradeEvent objects.
    Handles data type conversions and validation using Pydantic.
    Events that fail validation are reported to the shared ErrorReporter and dropped.
    """
    def __init__(self, error_reporter: ErrorReporter):
        self._single_event_adapter = TypeAdapter(TradeEvent)
        self._error_reporter = error_reporter

    def parse_events(self, raw_events: list[dict[str, Any]]) -> list[TradeEvent]:
        """
        Parses a list of raw event dictionaries, preserving input order.
        """
        logger.debug(f"TradeEventParser: Parsing {len(raw_events)} raw events.")
        parsed_events: list[TradeEvent] = []

        for raw_event in raw_events:
            if not isinstance(raw_event, dict):
                self._error_reporter.add_error(
                    UNKNOWN_EVENT_ID,
                    f"Validation error: expected an object, got {type(raw_event).__name__}"
                )
                continue

            event_id = str(raw_event.get("event_id") or UNKNOWN_EVENT_ID)
            try:
                parsed_events.append(self._single_event_adapter.validate_python(raw_event))
            except ValidationError as e:
                error_messages = "; ".join(
                    [f"{err['loc'][0] if err['loc'] else 'event'}: {err['msg']}" for err in e.errors()]
                )
                error_reason = f"Validation error: {error_messages}"
                logger.warning(f"TradeEventParser: Rejected event {event_id}: {error_reason}")
                self._error_reporter.add_error(event_id, error_reason)
            except Exception as e:
                error_reason = f"Unexpected parsing error: {type(e).__name__}: {str(e)}"
                logger.error(f"TradeEventParser: Failed to parse event {event_id}: {error_reason}")
                self._error_reporter.add_error(event_id, error_reason)

        return parsed_events
