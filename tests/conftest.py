"""Shared fixtures: fake quote providers, holdings and an in-memory database."""

import asyncio
from decimal import Decimal
from itertools import count
from typing import Dict, Optional, Set

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from carteira.core.valuation import Holding, Quote, build_holding
from carteira.data.market.base import QuoteProvider
from carteira.db.models import Base

_ids = count(1)


def make_holding(symbol: str, quantity: int, average_price: str, holding_id: Optional[str] = None) -> Holding:
    """Build a valid holding for tests."""
    return build_holding(
        id=holding_id or f"h-{next(_ids)}",
        owner_id="owner-1",
        symbol=symbol,
        quantity=quantity,
        average_price=Decimal(average_price),
    )


def make_quote(symbol: str, price: str, name: Optional[str] = None) -> Quote:
    return Quote(symbol=symbol, price=Decimal(price), display_name=name)


class StaticQuoteProvider(QuoteProvider):
    """Returns fixed prices; symbols without a price are omitted."""

    def __init__(self, prices: Dict[str, str], error: Optional[Exception] = None):
        self.prices = prices
        self.error = error
        self.calls = []

    @property
    def name(self) -> str:
        return "static"

    async def fetch_quotes(self, symbols: Set[str]) -> Dict[str, Quote]:
        self.calls.append(frozenset(symbols))
        if self.error is not None:
            raise self.error
        return {s: make_quote(s, self.prices[s]) for s in symbols if s in self.prices}


class GatedQuoteProvider(QuoteProvider):
    """Each fetch waits on a future the test resolves, keyed by symbol set."""

    def __init__(self):
        self.calls = []
        self.gates: Dict[frozenset, asyncio.Future] = {}

    @property
    def name(self) -> str:
        return "gated"

    def gate(self, *symbols: str) -> asyncio.Future:
        key = frozenset(symbols)
        if key not in self.gates:
            self.gates[key] = asyncio.get_running_loop().create_future()
        return self.gates[key]

    async def fetch_quotes(self, symbols: Set[str]) -> Dict[str, Quote]:
        self.calls.append(frozenset(symbols))
        return await self.gate(*symbols)


async def settle() -> None:
    """Let scheduled tasks run up to their next suspension point."""
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture
def db_session():
    """Session bound to a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
