"""Quote provider using yfinance."""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Optional, Set, Tuple

import pandas as pd
import yfinance as yf

from carteira.config import get_settings
from carteira.core.errors import MarketDataError
from carteira.core.valuation.models import Quote, normalize_symbol
from carteira.data.market.base import QuoteProvider

logger = logging.getLogger(__name__)
settings = get_settings()

# B3 tickers: four letters, a share-class number, optional fractional suffix (PETR4, MXRF11, PETR4F)
B3_TICKER = re.compile(r"^[A-Z]{4}\d{1,2}F?$")


def to_yahoo_symbol(symbol: str, suffix: str) -> str:
    """Map a ticker to Yahoo Finance format.

    B3 tickers get the exchange suffix (PETR4 -> PETR4.SA); anything else
    (already suffixed, US tickers, indices) is passed through.
    """
    symbol = normalize_symbol(symbol)
    if suffix and B3_TICKER.match(symbol):
        return symbol + suffix.upper()
    return symbol


class YFinanceQuoteProvider(QuoteProvider):
    """Fetch quotes from Yahoo Finance, one worker thread per symbol."""

    def __init__(self, symbol_suffix: Optional[str] = None):
        """Initialize provider.

        Args:
            symbol_suffix: Exchange suffix for B3 tickers. Defaults to settings value.
        """
        self.symbol_suffix = settings.quote_symbol_suffix if symbol_suffix is None else symbol_suffix

    @property
    def name(self) -> str:
        return "yfinance"

    def _fetch_one(self, yahoo_symbol: str) -> Tuple[Optional[float], Optional[str]]:
        """Blocking fetch of (price, display name) for one Yahoo symbol."""
        ticker = yf.Ticker(yahoo_symbol)
        info = ticker.info or {}
        price = info.get("currentPrice") or info.get("regularMarketPrice")
        if price is None:
            hist = ticker.history(period="1d")
            if not hist.empty:
                close = pd.to_numeric(hist["Close"], errors="coerce").dropna()
                if not close.empty:
                    price = float(close.iloc[-1])
        name = info.get("shortName") or info.get("longName")
        return price, name

    async def _quote(self, symbol: str) -> Optional[Quote]:
        yahoo_symbol = to_yahoo_symbol(symbol, self.symbol_suffix)
        price, name = await asyncio.to_thread(self._fetch_one, yahoo_symbol)
        if price is None:
            logger.warning(f"No price for {symbol} (Yahoo: {yahoo_symbol})")
            return None
        logger.debug(f"Fetched {symbol}: {price}")
        return Quote(
            symbol=symbol,
            display_name=name,
            price=Decimal(str(price)),
            fetched_at=datetime.now(timezone.utc),
        )

    async def fetch_quotes(self, symbols: Set[str]) -> Dict[str, Quote]:
        """Fetch quotes concurrently.

        Symbols that fail individually are left out of the result. The fetch
        fails as a whole only if every symbol raised.

        Raises:
            MarketDataError: If no symbol could be fetched because of errors
        """
        ordered = sorted(normalize_symbol(s) for s in symbols)
        if not ordered:
            return {}

        results = await asyncio.gather(*(self._quote(s) for s in ordered), return_exceptions=True)

        quotes: Dict[str, Quote] = {}
        errors = []
        for symbol, result in zip(ordered, results):
            if isinstance(result, Exception):
                logger.error(f"yfinance error for {symbol}: {result}")
                errors.append(f"{symbol}: {result}")
            elif result is not None:
                quotes[symbol] = result

        if errors and len(errors) == len(ordered):
            raise MarketDataError(f"yfinance fetch failed for all symbols ({'; '.join(errors)})")
        return quotes
