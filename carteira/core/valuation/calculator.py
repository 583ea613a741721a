"""Per-holding valuation."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Mapping, Optional, Sequence

from carteira.core.errors import InvariantViolation
from carteira.core.valuation.models import Holding, Quote, Valuation, ValuationStatus
from carteira.core.valuation.reconciler import reconcile

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


def _is_positive(value) -> bool:
    return isinstance(value, Decimal) and value.is_finite() and value > 0


def value_holding(holding: Holding, quote: Optional[Quote]) -> Valuation:
    """Compute the valuation of one holding against its quote.

    Args:
        holding: Validated holding
        quote: Matched quote, or None if the snapshot had no price for it

    Returns:
        Valuation (UNMATCHED with empty figures when quote is None)

    Raises:
        InvariantViolation: If quantity or average price is not positive
    """
    average_price = holding.average_price
    quantity = holding.quantity
    if not _is_positive(average_price):
        raise InvariantViolation(
            f"Holding {holding.id} ({holding.symbol}) has non-positive average price {average_price}"
        )
    if not isinstance(quantity, int) or quantity <= 0:
        raise InvariantViolation(
            f"Holding {holding.id} ({holding.symbol}) has non-positive quantity {quantity}"
        )

    if quote is None:
        return Valuation(
            holding_id=holding.id,
            symbol=holding.symbol,
            status=ValuationStatus.UNMATCHED,
            quantity=quantity,
            average_price=average_price,
        )
    if not quote.price.is_finite():
        raise InvariantViolation(f"Quote for {quote.symbol} has non-finite price {quote.price}")

    invested = average_price * quantity
    current_value = quote.price * quantity
    gain_percentage = (quote.price - average_price) / average_price * HUNDRED

    return Valuation(
        holding_id=holding.id,
        symbol=holding.symbol,
        status=ValuationStatus.MATCHED,
        quantity=quantity,
        average_price=average_price,
        current_price=quote.price,
        display_name=quote.display_name,
        invested=invested,
        current_value=current_value,
        gain=current_value - invested,
        gain_percentage=gain_percentage,
    )


def reconcile_and_value(
    holdings: Sequence[Holding],
    snapshot: Mapping[str, Quote],
) -> List[Valuation]:
    """Value every holding against a quote snapshot.

    Holdings that trip an invariant are excluded and flagged as REJECTED
    rather than aborting the pass.
    """
    valuations = []
    for holding, quote in reconcile(holdings, snapshot):
        try:
            valuations.append(value_holding(holding, quote))
        except InvariantViolation as e:
            logger.warning(f"Rejected holding {holding.id}: {e}")
            valuations.append(
                Valuation(
                    holding_id=holding.id,
                    symbol=holding.symbol,
                    status=ValuationStatus.REJECTED,
                    error=str(e),
                )
            )

    unmatched = [v.symbol for v in valuations if v.status == ValuationStatus.UNMATCHED]
    if unmatched:
        logger.debug(f"No quote for: {', '.join(unmatched)}")
    return valuations
