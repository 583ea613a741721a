"""Refresh coordination for the quote snapshot.

The coordinator owns the only mutable state in the engine: the current
QuoteSnapshot. Fetches for the same symbol set are coalesced onto a single
task, and a result is committed only if no fetch that started later has
already committed (stale results are dropped).
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, Optional, Sequence

from carteira.core.errors import MarketDataError
from carteira.core.valuation.models import Holding, QuoteSnapshot, normalize_symbol

if TYPE_CHECKING:
    from carteira.data.market.base import QuoteProvider

logger = logging.getLogger(__name__)


class RefreshState(str, Enum):
    """Observable state of the coordinator."""

    IDLE = "idle"
    FETCHING = "fetching"
    ERROR = "error"


def symbol_set(symbols: Iterable[str]) -> FrozenSet[str]:
    """Normalize symbols into the key used for coalescing."""
    return frozenset(n for n in (normalize_symbol(s) for s in symbols if s) if n)


class RefreshCoordinator:
    """Coordinate quote refreshes for the current holding set."""

    def __init__(
        self,
        provider: "QuoteProvider",
        timeout: Optional[float] = None,
        snapshot: Optional[QuoteSnapshot] = None,
    ):
        """Initialize the coordinator.

        Args:
            provider: Quote provider used for every fetch
            timeout: Seconds before a fetch is abandoned. None waits forever.
            snapshot: Initial snapshot (defaults to empty)
        """
        self.provider = provider
        self.timeout = timeout
        self._snapshot = snapshot if snapshot is not None else QuoteSnapshot.empty()
        self._in_flight: Dict[FrozenSet[str], asyncio.Task] = {}
        self._started = 0
        self._committed = 0
        self._last_error: Optional[MarketDataError] = None
        self._last_refreshed_at: Optional[datetime] = None

    @property
    def snapshot(self) -> QuoteSnapshot:
        """Most recently committed snapshot."""
        return self._snapshot

    @property
    def state(self) -> RefreshState:
        if self._in_flight:
            return RefreshState.FETCHING
        if self._last_error is not None:
            return RefreshState.ERROR
        return RefreshState.IDLE

    @property
    def last_error(self) -> Optional[MarketDataError]:
        return self._last_error

    @property
    def last_refreshed_at(self) -> Optional[datetime]:
        return self._last_refreshed_at

    @property
    def fetched_symbols(self) -> FrozenSet[str]:
        """Symbols the current snapshot was requested for."""
        return self._snapshot.symbols

    def clear_error(self) -> None:
        """Acknowledge a failed refresh (ERROR -> IDLE)."""
        self._last_error = None

    def needs_refresh(self, symbols: Iterable[str]) -> bool:
        """Whether symbols include any not covered by the last fetch."""
        return not symbol_set(symbols) <= self.fetched_symbols

    async def sync_holdings(self, holdings: Sequence[Holding]) -> QuoteSnapshot:
        """Refresh only if the holding set gained symbols since the last fetch."""
        symbols = [h.symbol for h in holdings]
        if self.needs_refresh(symbols):
            logger.debug("Holding set changed, refreshing quotes")
            return await self.refresh(symbols)
        return self._snapshot

    async def refresh(self, symbols: Iterable[str]) -> QuoteSnapshot:
        """Refresh quotes for a symbol set.

        Concurrent calls for the same set share one fetch and one result.

        Args:
            symbols: Ticker symbols (any casing)

        Returns:
            The current snapshot after the fetch completes

        Raises:
            MarketDataError: If the fetch failed. The previous snapshot is kept.
        """
        key = symbol_set(symbols)

        if not key:
            self._started += 1
            self._commit(self._started, QuoteSnapshot(symbols=(), fetched_at=_utcnow()))
            return self._snapshot

        task = self._in_flight.get(key)
        # A finished task may still be registered until its done callback runs
        if task is not None and not task.done():
            logger.debug(f"Coalescing refresh for {sorted(key)} onto in-flight fetch")
        else:
            self._started += 1
            task = asyncio.ensure_future(self._fetch(key, self._started))
            self._in_flight[key] = task
            task.add_done_callback(lambda t, key=key: self._on_done(key, t))

        # Shield so one cancelled caller does not cancel the shared fetch
        return await asyncio.shield(task)

    async def _fetch(self, key: FrozenSet[str], seq: int) -> QuoteSnapshot:
        logger.info(f"Refreshing quotes for {len(key)} symbol(s) via {self.provider.name}")
        try:
            request = self.provider.fetch_quotes(set(key))
            if self.timeout is not None:
                quotes = await asyncio.wait_for(request, self.timeout)
            else:
                quotes = await request
        except MarketDataError as e:
            self._fail(seq, e)
            raise
        except asyncio.TimeoutError:
            error = MarketDataError(f"Quote fetch timed out after {self.timeout}s")
            self._fail(seq, error)
            raise error from None
        except Exception as e:
            error = MarketDataError(f"Quote fetch failed: {e}")
            self._fail(seq, error)
            raise error from e

        fetched = [q for q in quotes.values() if normalize_symbol(q.symbol) in key]
        missing = key - {normalize_symbol(q.symbol) for q in fetched}
        if missing:
            logger.warning(f"No quote returned for: {', '.join(sorted(missing))}")

        self._commit(seq, QuoteSnapshot(fetched, symbols=key, fetched_at=_utcnow()))
        return self._snapshot

    def _commit(self, seq: int, snapshot: QuoteSnapshot) -> None:
        if seq < self._committed:
            logger.info(f"Discarding stale quote result (fetch #{seq}, current #{self._committed})")
            return
        self._snapshot = snapshot
        self._committed = seq
        self._last_error = None
        self._last_refreshed_at = snapshot.fetched_at
        logger.info(f"Quote snapshot updated: {len(snapshot)}/{len(snapshot.symbols)} symbol(s) priced")

    def _fail(self, seq: int, error: MarketDataError) -> None:
        if seq < self._committed:
            # A newer fetch already succeeded; its data stands
            logger.info(f"Ignoring failure of superseded fetch #{seq}: {error}")
            return
        self._last_error = error
        logger.error(f"Quote refresh failed, keeping previous snapshot: {error}")

    def _on_done(self, key: FrozenSet[str], task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled():
            # Mark retrieved; callers that are still waiting get it via the shield
            task.exception()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
