# src/core/exceptions.py


class PnLEngineError(ValueError):
    """Base class for errors raised by the PnL engine."""


class InsufficientHoldingsError(PnLEngineError):
    """A sell asked for more than the open lots of a symbol can cover."""


class InvalidArgumentError(PnLEngineError):
    """An engine operation was called with an unusable argument."""
