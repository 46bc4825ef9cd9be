# src/logic/cost_objects.py

from datetime import datetime
from decimal import Decimal

from src.core.models.pnl import LotSnapshot


class HoldingLot:
    """Represents a single open purchase lot of a crypto asset."""
    def __init__(self, lot_id: str, quantity: Decimal, unit_cost: Decimal, timestamp: datetime):
        self.lot_id = lot_id
        self.original_quantity = quantity
        self.quantity = quantity
        self.unit_cost = unit_cost
        self.timestamp = timestamp

    @property
    def cost_basis(self) -> Decimal:
        """Cost basis of the quantity still open."""
        return self.quantity * self.unit_cost

    def snapshot(self) -> LotSnapshot:
        return LotSnapshot(
            lot_id=self.lot_id,
            quantity=self.quantity,
            unit_cost=self.unit_cost,
            timestamp=self.timestamp
        )

    def __repr__(self) -> str:
        return (f"HoldingLot(lot_id='{self.lot_id}', "
                f"original_qty={self.original_quantity}, "
                f"qty={self.quantity}, "
                f"unit_cost={self.unit_cost:.4f}, "
                f"timestamp={self.timestamp.isoformat()})")


class ConsumedLot:
    """The part of a lot a sell is about to take. Planned before any lot is mutated."""
    def __init__(self, lot: HoldingLot, quantity: Decimal):
        self.lot = lot
        self.quantity = quantity

    @property
    def cost_basis(self) -> Decimal:
        return self.quantity * self.lot.unit_cost

    def __repr__(self) -> str:
        return f"ConsumedLot(lot_id='{self.lot.lot_id}', qty={self.quantity})"
