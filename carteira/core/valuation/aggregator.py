"""Portfolio aggregation over per-holding valuations."""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import Iterable

from carteira.core.valuation.models import PortfolioSummary, Valuation, ValuationStatus

ZERO = Decimal(0)


def aggregate(valuations: Iterable[Valuation]) -> PortfolioSummary:
    """Sum MATCHED valuations into portfolio totals.

    Unmatched and rejected entries are counted but never added to the totals.
    total_gain_percentage is 0 when nothing is invested.
    """
    total_invested = ZERO
    total_current = ZERO
    counts: Counter = Counter()

    for v in valuations:
        counts[v.status] += 1
        if v.status != ValuationStatus.MATCHED:
            continue
        total_invested += v.invested
        total_current += v.current_value

    total_gain = total_current - total_invested
    if total_invested == 0:
        total_gain_pct = ZERO
    else:
        total_gain_pct = total_gain / total_invested * 100

    return PortfolioSummary(
        total_invested=total_invested,
        total_current_value=total_current,
        total_gain=total_gain,
        total_gain_percentage=total_gain_pct,
        holdings_count=sum(counts.values()),
        matched_count=counts[ValuationStatus.MATCHED],
        unmatched_count=counts[ValuationStatus.UNMATCHED],
        rejected_count=counts[ValuationStatus.REJECTED],
    )
