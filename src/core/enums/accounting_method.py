# src/core/enums/accounting_method.py

from enum import Enum

class AccountingMethod(str, Enum):
    """
    Defines the lot-selection methods used when realizing a sell.
    """
    FIFO = "FIFO"
    LIFO = "LIFO"
    SPECIFIC = "SPECIFIC" # Caller names the lots to consume

    @classmethod
    def list(cls):
        """Returns a list of all accounting method values."""
        return list(map(lambda c: c.value, cls))
