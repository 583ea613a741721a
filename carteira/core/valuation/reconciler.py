"""Quote reconciliation: match holdings to quotes by normalized symbol."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from carteira.core.valuation.models import Holding, Quote, normalize_symbol


def index_quotes(quotes: Iterable[Quote]) -> Dict[str, Quote]:
    """Build a normalized symbol -> quote index. Later duplicates win."""
    return {normalize_symbol(q.symbol): q for q in quotes}


def reconcile(
    holdings: Sequence[Holding],
    snapshot: Mapping[str, Quote],
) -> List[Tuple[Holding, Optional[Quote]]]:
    """Pair every holding with its quote, or None when the snapshot lacks it.

    The snapshot is re-indexed once so lookups stay O(1) whatever casing the
    provider used for its keys.

    Args:
        holdings: Holdings to reconcile (order is preserved)
        snapshot: Mapping of symbol -> Quote

    Returns:
        List of (holding, quote or None)
    """
    index = index_quotes(snapshot.values())
    return [(h, index.get(normalize_symbol(h.symbol))) for h in holdings]
