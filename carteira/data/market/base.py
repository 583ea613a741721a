"""Market data provider abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Set

from carteira.core.valuation.models import Quote, ReferenceRate


class QuoteProvider(ABC):
    """Async source of market quotes.

    Implementations may return a partial mapping: a symbol missing from the
    result is not an error.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return a short provider name for logs."""
        pass

    @abstractmethod
    async def fetch_quotes(self, symbols: Set[str]) -> Dict[str, Quote]:
        """Fetch quotes for a set of symbols.

        Args:
            symbols: Normalized ticker symbols

        Returns:
            Dict of symbol -> Quote for the symbols that had data

        Raises:
            MarketDataError: If the fetch failed as a whole
        """
        pass


class ReferenceRateProvider(ABC):
    """Async source of the benchmark interest rate."""

    @abstractmethod
    async def fetch_rate(self) -> ReferenceRate:
        """Fetch the latest reference rate.

        Raises:
            MarketDataError: If the rate is unavailable
        """
        pass
