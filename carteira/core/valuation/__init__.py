"""Portfolio valuation engine."""

from .models import (
    Holding,
    PortfolioSummary,
    Quote,
    QuoteSnapshot,
    ReferenceRate,
    Valuation,
    ValuationStatus,
    build_holding,
    normalize_symbol,
)
from .reconciler import index_quotes, reconcile
from .calculator import reconcile_and_value, value_holding
from .aggregator import aggregate
from .refresh import RefreshCoordinator, RefreshState

__all__ = [
    "Holding",
    "PortfolioSummary",
    "Quote",
    "QuoteSnapshot",
    "ReferenceRate",
    "Valuation",
    "ValuationStatus",
    "build_holding",
    "normalize_symbol",
    "index_quotes",
    "reconcile",
    "reconcile_and_value",
    "value_holding",
    "aggregate",
    "RefreshCoordinator",
    "RefreshState",
]
