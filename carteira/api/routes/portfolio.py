"""Portfolio API routes."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from carteira.core.errors import (
    DuplicateHoldingError,
    MarketDataError,
    PersistenceError,
    ValidationError,
)
from carteira.api.deps import get_service
from carteira.core.portfolio.models import (
    HoldingCreate,
    HoldingResponse,
    HoldingUpdate,
    PortfolioView,
)
from carteira.core.portfolio.service import PortfolioService
from carteira.core.valuation import RefreshState

router = APIRouter()


class RefreshResponse(BaseModel):
    """Response for a quote refresh."""

    state: RefreshState
    priced: int
    requested: int


def _persistence_error(e: PersistenceError) -> HTTPException:
    if e.not_found:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/", response_model=List[HoldingResponse])
def list_holdings(service: PortfolioService = Depends(get_service)):
    """List all holdings for the current user."""
    return service.list_holdings()


@router.post("/", response_model=HoldingResponse, status_code=status.HTTP_201_CREATED)
def add_holding(
    payload: HoldingCreate,
    service: PortfolioService = Depends(get_service),
):
    """Add a new holding."""
    try:
        return service.add_holding(payload)
    except DuplicateHoldingError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except PersistenceError as e:
        raise _persistence_error(e)


@router.get("/valuation", response_model=PortfolioView)
async def get_valuation(
    rate: bool = Query(False, description="Include the SELIC reference rate"),
    service: PortfolioService = Depends(get_service),
):
    """Value holdings against the latest quotes.

    Fetches quotes first when holdings include symbols not yet fetched. A
    failed fetch is reported in refresh_state/refresh_error while figures keep
    using the previous quotes.
    """
    return await service.get_valuation(sync=True, include_rate=rate)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_quotes(service: PortfolioService = Depends(get_service)):
    """Refresh quotes for every holding."""
    try:
        snapshot = await service.refresh_quotes()
    except MarketDataError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return RefreshResponse(
        state=service.coordinator.state,
        priced=len(snapshot),
        requested=len(snapshot.symbols),
    )


@router.get("/{holding_id}", response_model=HoldingResponse)
def get_holding(holding_id: str, service: PortfolioService = Depends(get_service)):
    """Get a specific holding."""
    holding = service.get_holding(holding_id)
    if not holding:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Holding {holding_id} not found",
        )
    return holding


@router.patch("/{holding_id}", response_model=HoldingResponse)
def update_holding(
    holding_id: str,
    payload: HoldingUpdate,
    service: PortfolioService = Depends(get_service),
):
    """Update a holding."""
    try:
        return service.update_holding(holding_id, payload)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except PersistenceError as e:
        raise _persistence_error(e)


@router.delete("/{holding_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holding(holding_id: str, service: PortfolioService = Depends(get_service)):
    """Delete a holding."""
    try:
        service.remove_holding(holding_id)
    except PersistenceError as e:
        raise _persistence_error(e)
