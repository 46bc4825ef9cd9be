# src/tests/unit/test_parser.py

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from src.core.enums.trade_type import TradeType
from src.logic.parser import TradeEventParser, UNKNOWN_EVENT_ID
from src.logic.error_reporter import ErrorReporter

@pytest.fixture
def error_reporter():
    """Provides a fresh ErrorReporter instance for tests."""
    return ErrorReporter()

@pytest.fixture
def parser(error_reporter):
    """Provides a TradeEventParser instance with an injected ErrorReporter."""
    return TradeEventParser(error_reporter=error_reporter)

def get_base_valid_event_data():
    """Returns a dictionary for a valid BUY event."""
    return {
        "event_id": "evt_valid_001",
        "trade_type": "BUY",
        "symbol": "BTC",
        "quantity": "0.25",
        "total_value": "10012.50",
        "timestamp": "2024-01-01T12:00:00Z"
    }

def get_trade_event_data():
    return {
        "event_id": "evt_trade_001",
        "trade_type": "TRADE",
        "symbol": "BTC",
        "quantity": "0.1",
        "total_value": "4000",
        "to_symbol": "ETH",
        "to_quantity": "1.6",
        "to_total_value": "4000",
        "timestamp": "2024-01-02T12:00:00Z"
    }

def test_parse_events_valid_single(parser, error_reporter):
    """Test successful parsing of a single valid event."""
    parsed = parser.parse_events([get_base_valid_event_data()])

    assert len(parsed) == 1
    assert parsed[0].event_id == "evt_valid_001"
    assert parsed[0].trade_type == TradeType.BUY
    assert parsed[0].quantity == Decimal("0.25")
    assert parsed[0].total_value == Decimal("10012.50")
    assert parsed[0].timestamp == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
    assert error_reporter.has_errors() is False

def test_parse_events_naive_timestamp_is_utc(parser):
    data = get_base_valid_event_data()
    data["timestamp"] = "2024-01-01T12:00:00"

    parsed = parser.parse_events([data])
    assert parsed[0].timestamp.tzinfo == timezone.utc

def test_parse_events_valid_trade(parser, error_reporter):
    parsed = parser.parse_events([get_trade_event_data()])

    assert len(parsed) == 1
    assert parsed[0].to_symbol == "ETH"
    assert parsed[0].to_quantity == Decimal("1.6")
    assert error_reporter.has_errors() is False

def test_parse_events_trade_missing_leg(parser, error_reporter):
    data = get_trade_event_data()
    del data["to_quantity"]
    del data["to_total_value"]

    parsed = parser.parse_events([data])

    assert parsed == []
    reason = error_reporter.get_errors()[0].error_reason
    assert "to_quantity" in reason and "to_total_value" in reason

def test_parse_events_missing_field(parser, error_reporter):
    """Test parsing with an event missing a required field."""
    data = get_base_valid_event_data()
    del data["trade_type"]

    parsed = parser.parse_events([data])

    assert parsed == []
    errors = error_reporter.get_errors()
    assert len(errors) == 1
    assert errors[0].event_id == "evt_valid_001"
    assert "trade_type" in errors[0].error_reason
    assert "field required" in errors[0].error_reason.lower()

def test_parse_events_invalid_type(parser, error_reporter):
    data = get_base_valid_event_data()
    data["quantity"] = "ten"

    parser.parse_events([data])

    assert "input should be a valid decimal" in error_reporter.get_errors()[0].error_reason.lower()

@pytest.mark.parametrize("quantity", ["0", "-1"])
def test_parse_events_non_positive_quantity(parser, error_reporter, quantity):
    data = get_base_valid_event_data()
    data["quantity"] = quantity

    assert parser.parse_events([data]) == []
    assert "greater than 0" in error_reporter.get_errors()[0].error_reason

def test_parse_events_unknown_trade_type(parser, error_reporter):
    data = get_base_valid_event_data()
    data["trade_type"] = "STAKE"

    assert parser.parse_events([data]) == []
    assert [e.event_id for e in error_reporter.get_errors()] == ["evt_valid_001"]

def test_parse_events_mixed_valid_and_invalid(parser, error_reporter):
    """Valid events survive next to invalid ones, in input order."""
    valid = get_base_valid_event_data()
    invalid = get_base_valid_event_data()
    invalid["event_id"] = "evt_invalid_001"
    del invalid["symbol"]
    trade = get_trade_event_data()

    parsed = parser.parse_events([valid, invalid, trade])

    assert [e.event_id for e in parsed] == ["evt_valid_001", "evt_trade_001"]
    assert [e.event_id for e in error_reporter.get_errors()] == ["evt_invalid_001"]

def test_parse_events_missing_event_id(parser, error_reporter):
    data = get_base_valid_event_data()
    del data["event_id"]

    assert parser.parse_events([data]) == []
    assert [e.event_id for e in error_reporter.get_errors()] == [UNKNOWN_EVENT_ID]

def test_parse_events_non_dict_entry(parser, error_reporter):
    assert parser.parse_events(["not an event"]) == []
    assert [e.event_id for e in error_reporter.get_errors()] == [UNKNOWN_EVENT_ID]

def test_parse_events_unexpected_exception(parser, error_reporter, mocker):
    """Test parsing handles an unexpected general exception."""
    mocker.patch.object(parser._single_event_adapter, 'validate_python', side_effect=Exception("Simulated unexpected error"))

    parsed = parser.parse_events([get_base_valid_event_data()])

    assert parsed == []
    errors = error_reporter.get_errors()
    assert errors[0].event_id == "evt_valid_001"
    assert "unexpected parsing error" in errors[0].error_reason.lower()

def test_parse_events_empty_list(parser, error_reporter):
    assert parser.parse_events([]) == []
    assert error_reporter.has_errors() is False
