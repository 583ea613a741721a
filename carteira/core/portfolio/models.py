"""Pydantic schemas for portfolio operations."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from carteira.core.valuation.models import (
    PortfolioSummary,
    ReferenceRate,
    Valuation,
    normalize_symbol,
)
from carteira.core.valuation.refresh import RefreshState


class HoldingCreate(BaseModel):
    """Schema for creating a new holding."""

    symbol: str = Field(..., min_length=1, max_length=16)
    quantity: int = Field(..., gt=0)
    average_price: Decimal = Field(..., gt=0, description="Average acquisition price per unit")

    @field_validator("symbol")
    @classmethod
    def symbol_uppercase(cls, v: str) -> str:
        v = normalize_symbol(v)
        if not v:
            raise ValueError("symbol must not be blank")
        return v


class HoldingUpdate(BaseModel):
    """Schema for updating a holding."""

    quantity: Optional[int] = Field(None, gt=0)
    average_price: Optional[Decimal] = Field(None, gt=0)


class HoldingResponse(BaseModel):
    """Schema for holding response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    symbol: str
    quantity: int
    average_price: Decimal
    created_at: datetime


class PortfolioView(BaseModel):
    """Everything a presentation layer needs to render the portfolio."""

    valuations: List[Valuation]
    summary: PortfolioSummary
    refresh_state: RefreshState
    refresh_error: Optional[str] = None
    quotes_fetched_at: Optional[datetime] = None
    reference_rate: Optional[ReferenceRate] = None
