# src/tests/unit/test_lot_selection.py

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from src.core.enums.accounting_method import AccountingMethod
from src.core.exceptions import InvalidArgumentError
from src.logic.cost_objects import HoldingLot
from src.logic.lot_selection import (
    FIFOLotSelection,
    LIFOLotSelection,
    SpecificLotSelection,
    get_lot_selection_strategy,
)

@pytest.fixture
def lots():
    """Open lots inserted out of chronological order."""
    return [
        HoldingLot("L2", Decimal("2"), Decimal("20"), datetime(2024, 1, 2, tzinfo=timezone.utc)),
        HoldingLot("L1", Decimal("1"), Decimal("10"), datetime(2024, 1, 1, tzinfo=timezone.utc)),
        HoldingLot("L3", Decimal("3"), Decimal("30"), datetime(2024, 1, 3, tzinfo=timezone.utc)),
    ]

def ids(lots):
    return [lot.lot_id for lot in lots]

def test_fifo_orders_oldest_first(lots):
    assert ids(FIFOLotSelection().order_lots(lots)) == ["L1", "L2", "L3"]

def test_lifo_orders_newest_first(lots):
    assert ids(LIFOLotSelection().order_lots(lots)) == ["L3", "L2", "L1"]

def test_ordering_does_not_mutate_input(lots):
    FIFOLotSelection().order_lots(lots)
    LIFOLotSelection().order_lots(lots)
    assert ids(lots) == ["L2", "L1", "L3"]

def test_specific_without_ids_keeps_insertion_order(lots):
    assert ids(SpecificLotSelection().order_lots(lots)) == ["L2", "L1", "L3"]

def test_specific_with_ids_follows_given_order(lots):
    assert ids(SpecificLotSelection().order_lots(lots, ["L3", "L1"])) == ["L3", "L1"]

def test_specific_unknown_id_raises(lots):
    with pytest.raises(InvalidArgumentError) as excinfo:
        SpecificLotSelection().order_lots(lots, ["L1", "L9"])
    assert "L9" in str(excinfo.value)

def test_specific_repeated_id_raises(lots):
    with pytest.raises(InvalidArgumentError):
        SpecificLotSelection().order_lots(lots, ["L1", "L1"])

@pytest.mark.parametrize("strategy", [FIFOLotSelection(), LIFOLotSelection()])
def test_time_ordered_strategies_reject_lot_ids(lots, strategy):
    with pytest.raises(InvalidArgumentError):
        strategy.order_lots(lots, ["L1"])

@pytest.mark.parametrize("method, expected_type", [
    (AccountingMethod.FIFO, FIFOLotSelection),
    (AccountingMethod.LIFO, LIFOLotSelection),
    (AccountingMethod.SPECIFIC, SpecificLotSelection),
])
def test_get_lot_selection_strategy(method, expected_type):
    assert isinstance(get_lot_selection_strategy(method), expected_type)
