"""Market data feeds (quotes, reference rate)."""

from .base import QuoteProvider, ReferenceRateProvider
from .provider import YFinanceQuoteProvider
from .rates import BCBReferenceRateProvider

__all__ = [
    "QuoteProvider",
    "ReferenceRateProvider",
    "YFinanceQuoteProvider",
    "BCBReferenceRateProvider",
]
