# src/core/enums/trade_type.py

from enum import Enum

class TradeType(str, Enum):
    """
    Defines the supported kinds of trade events.
    Inheriting from 'str' ensures that the enum values are strings,
    making them directly usable and comparable with string inputs.
    """
    BUY = "BUY"
    SELL = "SELL"
    TRADE = "TRADE" # Direct asset-to-asset exchange, no cash leg
