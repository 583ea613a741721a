"""Error taxonomy for the valuation engine and its collaborators."""

from __future__ import annotations

from typing import Optional


class CarteiraError(Exception):
    """Base class for all application errors."""


class ValidationError(CarteiraError):
    """A holding failed required-field or positivity constraints.

    Raised at the boundary; an invalid holding never reaches valuation.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class DuplicateHoldingError(ValidationError):
    """The owner already holds this symbol."""

    def __init__(self, symbol: str):
        super().__init__(f"Holding for {symbol} already exists", field="symbol")
        self.symbol = symbol


class MarketDataError(CarteiraError):
    """A quote or reference-rate fetch failed (network, timeout, not found)."""


class PersistenceError(CarteiraError):
    """The holdings store rejected an operation."""

    def __init__(self, message: str, not_found: bool = False):
        super().__init__(message)
        self.not_found = not_found


class InvariantViolation(CarteiraError):
    """Corrupt data reached the calculator (e.g. non-positive average price)."""
