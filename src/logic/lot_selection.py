# src/logic/lot_selection.py
import logging
from typing import Protocol, Optional, Sequence

from src.core.enums.accounting_method import AccountingMethod
from src.core.exceptions import InvalidArgumentError
from src.logic.cost_objects import HoldingLot

logger = logging.getLogger(__name__)

# --- Lot Selection Strategy Protocol ---

class LotSelectionStrategy(Protocol):
    """
    Protocol (interface) for lot selection strategies.
    A strategy decides in which order a sell consumes the open lots of a symbol.
    It never mutates the lots it is given.
    """
    def order_lots(
        self, lots: Sequence[HoldingLot], lot_ids: Optional[Sequence[str]] = None
    ) -> list[HoldingLot]:
        ...


def _reject_lot_ids(method: AccountingMethod, lot_ids: Optional[Sequence[str]]):
    if lot_ids:
        raise InvalidArgumentError(
            f"Explicit lot ids can only be used with the {AccountingMethod.SPECIFIC.value} method, not {method.value}."
        )

# --- FIFO ---

class FIFOLotSelection:
    """First-In, First-Out: oldest lot first. Lots with equal timestamps keep insertion order."""
    def order_lots(
        self, lots: Sequence[HoldingLot], lot_ids: Optional[Sequence[str]] = None
    ) -> list[HoldingLot]:
        _reject_lot_ids(AccountingMethod.FIFO, lot_ids)
        return sorted(lots, key=lambda lot: lot.timestamp)

# --- LIFO ---

class LIFOLotSelection:
    """Last-In, First-Out: newest lot first. Lots with equal timestamps keep insertion order."""
    def order_lots(
        self, lots: Sequence[HoldingLot], lot_ids: Optional[Sequence[str]] = None
    ) -> list[HoldingLot]:
        _reject_lot_ids(AccountingMethod.LIFO, lot_ids)
        # sorted() stays stable with reverse=True
        return sorted(lots, key=lambda lot: lot.timestamp, reverse=True)

# --- Specific Identification ---

class SpecificLotSelection:
    """
    Specific identification: the caller names the lots to consume, in order.
    Without lot ids the lots are consumed in insertion order.
    """
    def order_lots(
        self, lots: Sequence[HoldingLot], lot_ids: Optional[Sequence[str]] = None
    ) -> list[HoldingLot]:
        if not lot_ids:
            logger.debug("SPECIFIC: No lot ids given, falling back to insertion order.")
            return list(lots)

        if len(set(lot_ids)) != len(lot_ids):
            raise InvalidArgumentError(f"Lot ids must not repeat: {list(lot_ids)}.")

        lots_by_id = {lot.lot_id: lot for lot in lots}
        unknown = [lot_id for lot_id in lot_ids if lot_id not in lots_by_id]
        if unknown:
            raise InvalidArgumentError(f"Unknown or closed lot ids: {unknown}.")

        selected = [lots_by_id[lot_id] for lot_id in lot_ids]
        logger.debug(f"SPECIFIC: Selected lots {[lot.lot_id for lot in selected]}.")
        return selected


_STRATEGIES: dict[AccountingMethod, LotSelectionStrategy] = {
    AccountingMethod.FIFO: FIFOLotSelection(),
    AccountingMethod.LIFO: LIFOLotSelection(),
    AccountingMethod.SPECIFIC: SpecificLotSelection(),
}

def get_lot_selection_strategy(method: AccountingMethod) -> LotSelectionStrategy:
    """Returns the lot selection strategy for an accounting method."""
    return _STRATEGIES[method]
