"""Engine data types: holdings, quotes, snapshots and derived valuations."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from carteira.core.errors import ValidationError


def normalize_symbol(symbol: str) -> str:
    """Normalize a ticker for matching (PETR4, petr4 and ' Petr4 ' are equal)."""
    return symbol.strip().casefold().upper()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Holding(BaseModel):
    """A user's recorded position. Immutable for the duration of a pass."""

    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    symbol: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    average_price: Decimal = Field(..., gt=0)
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("symbol")
    @classmethod
    def symbol_normalized(cls, v: str) -> str:
        v = normalize_symbol(v)
        if not v:
            raise ValueError("symbol must not be blank")
        return v

    @property
    def total_cost(self) -> Decimal:
        """Amount invested in this position."""
        return self.average_price * self.quantity


def build_holding(**data: Any) -> Holding:
    """Construct a Holding, raising ValidationError on bad fields.

    Raises:
        ValidationError: If a field is missing or violates its constraint
    """
    try:
        return Holding(**data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ValidationError(f"Invalid holding: {field}: {first['msg']}", field=field) from e


class Quote(BaseModel):
    """Current market price for one instrument."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., min_length=1)
    display_name: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    fetched_at: datetime = Field(default_factory=_utcnow)

    @field_validator("symbol")
    @classmethod
    def symbol_normalized(cls, v: str) -> str:
        return normalize_symbol(v)


class ReferenceRate(BaseModel):
    """Benchmark interest rate shown next to the portfolio (e.g. SELIC)."""

    model_config = ConfigDict(frozen=True)

    value: Decimal
    effective_date: date
    name: str = "SELIC"


class QuoteSnapshot(Mapping[str, Quote]):
    """Read-only set of quotes from one successful fetch.

    Keyed by normalized symbol. A new snapshot replaces the old one as a whole;
    instances are never mutated.
    """

    __slots__ = ("_quotes", "_symbols", "_fetched_at")

    def __init__(
        self,
        quotes: Iterable[Quote] = (),
        symbols: Optional[Iterable[str]] = None,
        fetched_at: Optional[datetime] = None,
    ):
        index = {}
        for quote in quotes:
            index[normalize_symbol(quote.symbol)] = quote
        self._quotes = MappingProxyType(index)
        # Symbols that were requested, which can exceed the quotes returned
        requested = index.keys() if symbols is None else symbols
        self._symbols = frozenset(normalize_symbol(s) for s in requested)
        self._fetched_at = fetched_at

    @classmethod
    def empty(cls) -> "QuoteSnapshot":
        return cls()

    @property
    def symbols(self) -> frozenset:
        """Normalized symbols the snapshot was fetched for."""
        return self._symbols

    @property
    def fetched_at(self) -> Optional[datetime]:
        return self._fetched_at

    def __getitem__(self, symbol: str) -> Quote:
        return self._quotes[normalize_symbol(symbol)]

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and normalize_symbol(symbol) in self._quotes

    def __iter__(self) -> Iterator[str]:
        return iter(self._quotes)

    def __len__(self) -> int:
        return len(self._quotes)

    def __repr__(self) -> str:
        return f"<QuoteSnapshot(quotes={len(self._quotes)}, fetched_at={self._fetched_at})>"


class ValuationStatus(str, Enum):
    """Outcome of valuing one holding."""

    MATCHED = "matched"
    UNMATCHED = "unmatched"
    REJECTED = "rejected"  # invariant violation; excluded from totals


class Valuation(BaseModel):
    """Computed outcome for one holding.

    Numeric fields are None unless status is MATCHED, so a missing quote is
    never mistaken for a break-even position.
    """

    model_config = ConfigDict(frozen=True)

    holding_id: str
    symbol: str
    status: ValuationStatus
    quantity: Optional[int] = None
    average_price: Optional[Decimal] = None
    current_price: Optional[Decimal] = None
    display_name: Optional[str] = None
    invested: Optional[Decimal] = None
    current_value: Optional[Decimal] = None
    gain: Optional[Decimal] = None
    gain_percentage: Optional[Decimal] = None
    error: Optional[str] = None


class PortfolioSummary(BaseModel):
    """Portfolio totals over MATCHED valuations."""

    model_config = ConfigDict(frozen=True)

    total_invested: Decimal
    total_current_value: Decimal
    total_gain: Decimal
    total_gain_percentage: Decimal
    holdings_count: int = 0
    matched_count: int = 0
    unmatched_count: int = 0
    rejected_count: int = 0
