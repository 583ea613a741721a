"""Portfolio service - ties the holdings store, providers and valuation engine."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from carteira.core.errors import MarketDataError
from carteira.core.portfolio.models import HoldingCreate, HoldingUpdate, PortfolioView
from carteira.core.portfolio.repository import HoldingRepository
from carteira.core.valuation import (
    Holding,
    QuoteSnapshot,
    ReferenceRate,
    RefreshCoordinator,
    aggregate,
    reconcile_and_value,
)
from carteira.data.market.base import ReferenceRateProvider

logger = logging.getLogger(__name__)


class PortfolioService:
    """Service for portfolio maintenance and valuation.

    The service is cheap and per-session; the RefreshCoordinator passed in is
    long-lived and shared so its snapshot and coalescing span requests.
    """

    def __init__(
        self,
        db: Session,
        coordinator: RefreshCoordinator,
        rate_provider: Optional[ReferenceRateProvider] = None,
        owner_id: Optional[str] = None,
    ):
        self.repo = HoldingRepository(db)
        self.coordinator = coordinator
        self.rate_provider = rate_provider
        self.owner_id = owner_id

    def list_holdings(self) -> List[Holding]:
        return self.repo.list(self.owner_id)

    def add_holding(self, payload: HoldingCreate) -> Holding:
        return self.repo.create(
            symbol=payload.symbol,
            quantity=payload.quantity,
            average_price=payload.average_price,
            owner_id=self.owner_id,
        )

    def get_holding(self, holding_id: str) -> Optional[Holding]:
        return self.repo.get_by_id(holding_id, owner_id=self.owner_id)

    def update_holding(self, holding_id: str, payload: HoldingUpdate) -> Holding:
        return self.repo.update(
            holding_id,
            quantity=payload.quantity,
            average_price=payload.average_price,
            owner_id=self.owner_id,
        )

    def remove_holding(self, holding_id: str) -> None:
        self.repo.delete(holding_id, owner_id=self.owner_id)

    async def refresh_quotes(self) -> QuoteSnapshot:
        """Explicitly refresh quotes for the current holding set.

        Raises:
            MarketDataError: If the fetch failed (previous quotes are kept)
        """
        holdings = self.list_holdings()
        return await self.coordinator.refresh(h.symbol for h in holdings)

    async def get_reference_rate(self) -> Optional[ReferenceRate]:
        """Fetch the reference rate, or None if it is unavailable."""
        if self.rate_provider is None:
            return None
        try:
            return await self.rate_provider.fetch_rate()
        except MarketDataError as e:
            logger.warning(f"Reference rate unavailable: {e}")
            return None

    async def get_valuation(self, sync: bool = True, include_rate: bool = False) -> PortfolioView:
        """Value the current holdings against the latest quotes.

        Args:
            sync: Refresh first if holdings gained symbols since the last fetch
            include_rate: Also fetch the reference rate

        Returns:
            PortfolioView. A failed refresh shows up as refresh_state=ERROR with
            figures computed from the previous snapshot.
        """
        holdings = self.list_holdings()

        if sync:
            try:
                await self.coordinator.sync_holdings(holdings)
            except MarketDataError:
                # Reported through coordinator state below
                pass

        snapshot = self.coordinator.snapshot
        valuations = reconcile_and_value(holdings, snapshot)
        summary = aggregate(valuations)
        error = self.coordinator.last_error

        return PortfolioView(
            valuations=valuations,
            summary=summary,
            refresh_state=self.coordinator.state,
            refresh_error=str(error) if error else None,
            quotes_fetched_at=snapshot.fetched_at,
            reference_rate=await self.get_reference_rate() if include_rate else None,
        )
