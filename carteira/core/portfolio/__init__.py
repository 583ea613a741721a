"""Portfolio management and valuation."""

from .models import (
    HoldingCreate,
    HoldingUpdate,
    HoldingResponse,
    PortfolioView,
)
from .repository import HoldingRepository
from .service import PortfolioService

__all__ = [
    "HoldingCreate",
    "HoldingUpdate",
    "HoldingResponse",
    "PortfolioView",
    "HoldingRepository",
    "PortfolioService",
]
