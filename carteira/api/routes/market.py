"""Market data API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from carteira.api.deps import get_rate_provider
from carteira.core.errors import MarketDataError
from carteira.core.valuation import ReferenceRate
from carteira.data.market.base import ReferenceRateProvider

router = APIRouter()


@router.get("/rate", response_model=ReferenceRate)
async def get_rate(provider: ReferenceRateProvider = Depends(get_rate_provider)):
    """Current SELIC reference rate."""
    try:
        return await provider.fetch_rate()
    except MarketDataError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
