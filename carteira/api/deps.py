"""FastAPI dependencies."""

from __future__ import annotations

from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from carteira.core.portfolio.service import PortfolioService
from carteira.core.valuation import RefreshCoordinator
from carteira.data.market.base import ReferenceRateProvider
from carteira.db.database import get_db as db_context


def get_db() -> Generator[Session, None, None]:
    """Yield a database session."""
    with db_context() as db:
        yield db


def get_coordinator(request: Request) -> RefreshCoordinator:
    """Process-wide refresh coordinator (holds the quote snapshot)."""
    return request.app.state.coordinator


def get_rate_provider(request: Request) -> ReferenceRateProvider:
    return request.app.state.rate_provider


def get_service(
    db: Session = Depends(get_db),
    coordinator: RefreshCoordinator = Depends(get_coordinator),
    rate_provider: ReferenceRateProvider = Depends(get_rate_provider),
) -> PortfolioService:
    """Per-request portfolio service."""
    return PortfolioService(db, coordinator, rate_provider=rate_provider)
