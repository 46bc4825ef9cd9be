# src/logic/pnl_engine.py

import itertools
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from src.core.enums.accounting_method import AccountingMethod
from src.core.exceptions import InsufficientHoldingsError, InvalidArgumentError
from src.core.models.pnl import (
    HoldingSummary,
    MarketValue,
    PortfolioTotals,
    SellPnLDetail,
    SellPnLResult,
    UnrealizedPnL,
)
from src.logic.cost_objects import ConsumedLot, HoldingLot
from src.logic.lot_selection import get_lot_selection_strategy

logger = logging.getLogger(__name__)

NumberLike = Union[Decimal, int, float, str]


def _to_decimal(value: NumberLike, name: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidArgumentError(f"{name} must be a number, got {value!r}.") from e
    if not result.is_finite():
        raise InvalidArgumentError(f"{name} must be a finite number, got {value!r}.")
    return result

def _positive(value: NumberLike, name: str) -> Decimal:
    result = _to_decimal(value, name)
    if result <= 0:
        raise InvalidArgumentError(f"{name} must be greater than zero, got {result}.")
    return result

def _non_negative(value: NumberLike, name: str) -> Decimal:
    result = _to_decimal(value, name)
    if result < 0:
        raise InvalidArgumentError(f"{name} must not be negative, got {result}.")
    return result

def _normalize_symbol(symbol: Any) -> str:
    normalized = str(symbol).strip().upper() if symbol is not None else ""
    if not normalized:
        raise InvalidArgumentError("Symbol must be a non-empty string.")
    return normalized

def _resolve_timestamp(timestamp: Optional[datetime]) -> datetime:
    if timestamp is None:
        return datetime.now(timezone.utc)
    if not isinstance(timestamp, datetime):
        raise InvalidArgumentError(f"timestamp must be a datetime, got {type(timestamp).__name__}.")
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp

def _safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator, or 0 when the denominator is 0."""
    if denominator == 0:
        return Decimal(0)
    return numerator / denominator

def _percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Percentage of numerator over a cost basis; 0 unless the cost basis is positive."""
    if denominator <= 0:
        return Decimal(0)
    return numerator / denominator * Decimal(100)


class PnLEngine:
    """
    Lot-based cost basis and profit-and-loss accounting for crypto assets.

    Each buy opens its own lot. A sell consumes open lots in the order given by the
    active accounting method and realizes P&L; proceeds are split across the consumed
    lots by quantity share. Market prices are never stored: callers pass current
    valuations to the unrealized P&L queries.

    Instances are not thread-safe. Use one engine per account or ledger run.
    """
    def __init__(self, method: Union[AccountingMethod, str] = AccountingMethod.FIFO):
        self._method = self._coerce_method(method)
        self._holdings: dict[str, list[HoldingLot]] = {}
        self._realized_pnl = Decimal(0)
        self._lot_counter = itertools.count(1)
        logger.debug(f"PnLEngine initialized with method {self._method.value}.")

    @property
    def method(self) -> AccountingMethod:
        return self._method

    # --- Configuration ---

    @staticmethod
    def _coerce_method(method: Union[AccountingMethod, str]) -> AccountingMethod:
        try:
            return AccountingMethod(method)
        except (ValueError, TypeError):
            raise InvalidArgumentError(
                f"Invalid method '{method}'. Use {', '.join(AccountingMethod.list())}."
            ) from None

    def set_method(self, method: Union[AccountingMethod, str]):
        """
        Switches the accounting method for all subsequent sells.
        Lots already consumed are not reclassified.
        """
        self._method = self._coerce_method(method)
        logger.debug(f"PnLEngine: Accounting method set to {self._method.value}.")

    def reset(self):
        """Clears all holdings and realized P&L, returning the engine to its initial state."""
        self._holdings = {}
        self._realized_pnl = Decimal(0)
        self._lot_counter = itertools.count(1)
        logger.debug("PnLEngine: Reset holdings and realized P&L.")

    # --- Buys ---

    def _prepare_buy(
        self,
        symbol: str,
        quantity: NumberLike,
        total_cost_including_fees: NumberLike,
        timestamp: Optional[datetime],
        lot_id: Optional[str],
    ) -> Tuple[str, Decimal, Decimal, datetime, Optional[str]]:
        symbol = _normalize_symbol(symbol)
        quantity = _positive(quantity, "quantity")
        total_cost = _non_negative(total_cost_including_fees, "total_cost_including_fees")
        timestamp = _resolve_timestamp(timestamp)
        if lot_id is not None:
            lot_id = str(lot_id)
            if any(lot.lot_id == lot_id for lot in self._holdings.get(symbol, [])):
                raise InvalidArgumentError(f"Lot '{lot_id}' is already open for '{symbol}'.")
        return symbol, quantity, total_cost, timestamp, lot_id

    def _next_lot_id(self, symbol: str) -> str:
        open_ids = {lot.lot_id for lot in self._holdings.get(symbol, [])}
        while True:
            candidate = f"{symbol}-{next(self._lot_counter)}"
            if candidate not in open_ids:
                return candidate

    def _add_lot(
        self,
        symbol: str,
        quantity: Decimal,
        total_cost: Decimal,
        timestamp: datetime,
        lot_id: Optional[str],
    ) -> HoldingLot:
        lot = HoldingLot(
            lot_id=lot_id if lot_id is not None else self._next_lot_id(symbol),
            quantity=quantity,
            unit_cost=total_cost / quantity,
            timestamp=timestamp,
        )
        self._holdings.setdefault(symbol, []).append(lot)
        logger.debug(f"PnLEngine: Added lot {lot} for {symbol}. Open lots: {[l.lot_id for l in self._holdings[symbol]]}")
        return lot

    def record_buy(
        self,
        symbol: str,
        quantity: NumberLike,
        total_cost_including_fees: NumberLike,
        timestamp: Optional[datetime] = None,
        lot_id: Optional[str] = None,
    ) -> HoldingLot:
        """
        Opens a new lot. The unit cost is total_cost_including_fees / quantity.
        Buys are never merged, even for a repeated symbol and price.
        """
        return self._add_lot(*self._prepare_buy(symbol, quantity, total_cost_including_fees, timestamp, lot_id))

    # --- Sells ---

    def _plan_sell(
        self, symbol: str, quantity: Decimal, lot_ids: Optional[Sequence[str]]
    ) -> list[ConsumedLot]:
        available = self.get_total_quantity(symbol)
        if quantity > available:
            logger.warning(f"PnLEngine Sell: Insufficient holdings for {symbol}. Required: {quantity}, Available: {available}.")
            raise InsufficientHoldingsError(
                f"Sell quantity ({quantity}) exceeds available holdings ({available}) for '{symbol}'."
            )

        strategy = get_lot_selection_strategy(self._method)
        ordered_lots = strategy.order_lots(self._holdings.get(symbol, []), lot_ids)

        plan: list[ConsumedLot] = []
        remaining = quantity
        for lot in ordered_lots:
            if remaining <= 0:
                break
            take = min(lot.quantity, remaining)
            plan.append(ConsumedLot(lot, take))
            remaining -= take
            logger.debug(f"  PnLEngine Sell: Planned {take} from lot {lot.lot_id} (unit cost {lot.unit_cost:.4f}). Remaining: {remaining}.")

        if remaining > 0:
            selected = quantity - remaining
            logger.warning(f"PnLEngine Sell: Selected lots for {symbol} only cover {selected} of {quantity}.")
            raise InsufficientHoldingsError(
                f"Sell quantity ({quantity}) exceeds available holdings ({selected}) in the selected lots for '{symbol}'."
            )
        return plan

    @staticmethod
    def _realize(plan: list[ConsumedLot], total_sale_value: Decimal) -> SellPnLResult:
        total_quantity = sum((consumed.quantity for consumed in plan), Decimal(0))
        total_cost_basis = Decimal(0)
        allocated = Decimal(0)
        details: list[SellPnLDetail] = []

        for index, consumed in enumerate(plan):
            cost_basis = consumed.cost_basis
            if index == len(plan) - 1:
                # Last portion takes the remainder so the shares add up to the total exactly
                sale_value = total_sale_value - allocated
            else:
                sale_value = total_sale_value * consumed.quantity / total_quantity
            allocated += sale_value
            total_cost_basis += cost_basis
            details.append(SellPnLDetail(
                lot_id=consumed.lot.lot_id,
                quantity=consumed.quantity,
                cost_basis=cost_basis,
                sale_value=sale_value,
                pnl=sale_value - cost_basis,
                original_purchase_timestamp=consumed.lot.timestamp,
            ))

        return SellPnLResult(
            total_quantity_sold=total_quantity,
            total_cost_basis=total_cost_basis,
            total_sale_value=total_sale_value,
            total_pnl=total_sale_value - total_cost_basis,
            details=details,
        )

    def _consume(self, symbol: str, plan: list[ConsumedLot]):
        for consumed in plan:
            consumed.lot.quantity -= consumed.quantity
        open_lots = [lot for lot in self._holdings[symbol] if lot.quantity != 0]
        if open_lots:
            self._holdings[symbol] = open_lots
        else:
            del self._holdings[symbol]
        logger.debug(f"PnLEngine Sell: Open lots for {symbol} after sell: {[l.lot_id for l in open_lots]}.")

    def record_sell(
        self,
        symbol: str,
        quantity: NumberLike,
        total_sale_value_after_fees: NumberLike,
        timestamp: Optional[datetime] = None,
        lot_ids: Optional[Sequence[str]] = None,
    ) -> SellPnLResult:
        """
        Sells quantity of symbol, consuming lots per the active accounting method,
        and adds the sell's P&L to the realized total.

        Either the full quantity is consumed or nothing changes: raises
        InsufficientHoldingsError when the open lots (or, under SPECIFIC, the named
        lots) do not cover the quantity, and InvalidArgumentError for bad input.
        """
        symbol = _normalize_symbol(symbol)
        quantity = _positive(quantity, "quantity")
        total_sale_value = _non_negative(total_sale_value_after_fees, "total_sale_value_after_fees")
        timestamp = _resolve_timestamp(timestamp)
        logger.debug(f"PnLEngine Sell: {quantity} {symbol} for {total_sale_value} at {timestamp.isoformat()} ({self._method.value}).")

        plan = self._plan_sell(symbol, quantity, lot_ids)
        result = self._realize(plan, total_sale_value)
        self._consume(symbol, plan)
        self._realized_pnl += result.total_pnl

        logger.debug(f"PnLEngine Sell: Cost basis {result.total_cost_basis}, P&L {result.total_pnl}. Realized total: {self._realized_pnl}.")
        return result

    def record_trade(
        self,
        from_symbol: str,
        from_quantity: NumberLike,
        to_symbol: str,
        to_quantity: NumberLike,
        total_from_value: NumberLike,
        total_to_value: NumberLike,
        timestamp: Optional[datetime] = None,
        to_lot_id: Optional[str] = None,
        lot_ids: Optional[Sequence[str]] = None,
    ) -> SellPnLResult:
        """
        Exchanges one asset for another without a cash leg: sells from_symbol for
        total_from_value, then opens a to_symbol lot costing total_to_value.
        Both legs are validated before anything is mutated. Returns the sell result.
        """
        buy_leg = self._prepare_buy(to_symbol, to_quantity, total_to_value, timestamp, to_lot_id)
        result = self.record_sell(from_symbol, from_quantity, total_from_value, timestamp, lot_ids=lot_ids)
        self._add_lot(*buy_leg)
        return result

    # --- Queries ---

    def get_total_quantity(self, symbol: str) -> Decimal:
        lots = self._holdings.get(_normalize_symbol(symbol), [])
        return sum((lot.quantity for lot in lots), Decimal(0))

    def get_avg_cost_basis(self, symbol: str) -> Decimal:
        lots = self._holdings.get(_normalize_symbol(symbol), [])
        total_cost = sum((lot.cost_basis for lot in lots), Decimal(0))
        total_quantity = sum((lot.quantity for lot in lots), Decimal(0))
        return _safe_divide(total_cost, total_quantity)

    def get_realized_pnl(self) -> Decimal:
        return self._realized_pnl

    def get_all_holdings(self) -> dict[str, HoldingSummary]:
        """Aggregates and lot copies for every symbol with at least one open lot."""
        holdings: dict[str, HoldingSummary] = {}
        for symbol, lots in self._holdings.items():
            if not lots:
                continue
            total_quantity = sum((lot.quantity for lot in lots), Decimal(0))
            total_cost_basis = sum((lot.cost_basis for lot in lots), Decimal(0))
            holdings[symbol] = HoldingSummary(
                quantity=total_quantity,
                avg_cost_basis=_safe_divide(total_cost_basis, total_quantity),
                total_cost_basis=total_cost_basis,
                lots=[lot.snapshot() for lot in lots],
            )
        return holdings

    @staticmethod
    def _normalize_market_values(current_market_values: Mapping[str, Any]) -> dict[str, MarketValue]:
        market_values: dict[str, MarketValue] = {}
        for symbol, value in current_market_values.items():
            if value is None:
                continue
            if not isinstance(value, MarketValue):
                try:
                    value = MarketValue.model_validate(value)
                except ValidationError as e:
                    raise InvalidArgumentError(f"Invalid market value for '{symbol}': {e}") from e
            normalized = _normalize_symbol(symbol)
            if normalized in market_values:
                raise InvalidArgumentError(f"Market value for '{normalized}' is given more than once.")
            market_values[normalized] = value
        return market_values

    def compute_unrealized_pnl(self, current_market_values: Mapping[str, Any]) -> dict[str, UnrealizedPnL]:
        """
        Values every symbol that has open lots and a supplied market value.
        Symbols without a market value are skipped.
        """
        market_values = self._normalize_market_values(current_market_values)
        unrealized: dict[str, UnrealizedPnL] = {}

        for symbol, lots in self._holdings.items():
            market_value = market_values.get(symbol)
            if market_value is None:
                logger.debug(f"PnLEngine: No market value supplied for {symbol}, skipping.")
                continue

            total_cost_basis = sum((lot.cost_basis for lot in lots), Decimal(0))
            total_quantity = sum((lot.quantity for lot in lots), Decimal(0))
            current_value = Decimal(market_value.total_value)
            unrealized_pnl = current_value - total_cost_basis

            unrealized[symbol] = UnrealizedPnL(
                quantity=total_quantity,
                avg_cost_basis=_safe_divide(total_cost_basis, total_quantity),
                total_cost_basis=total_cost_basis,
                current_value=current_value,
                unrealized_pnl=unrealized_pnl,
                unrealized_pnl_percent=_percent(unrealized_pnl, total_cost_basis),
            )
        return unrealized

    def get_portfolio_totals(self, current_market_values: Mapping[str, Any]) -> PortfolioTotals:
        unrealized = self.compute_unrealized_pnl(current_market_values)
        total_unrealized = sum((u.unrealized_pnl for u in unrealized.values()), Decimal(0))
        total_current_value = sum((u.current_value for u in unrealized.values()), Decimal(0))
        total_cost_basis = sum((u.total_cost_basis for u in unrealized.values()), Decimal(0))
        total_pnl = self._realized_pnl + total_unrealized

        return PortfolioTotals(
            realized_pnl=self._realized_pnl,
            unrealized_pnl=total_unrealized,
            total_pnl=total_pnl,
            total_current_value=total_current_value,
            total_cost_basis=total_cost_basis,
            total_return_percent=_percent(total_pnl, total_cost_basis),
        )
