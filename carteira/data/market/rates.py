"""Reference rate (SELIC) from the Banco Central do Brasil SGS API."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests

from carteira.config import get_settings
from carteira.core.errors import MarketDataError
from carteira.core.valuation.models import ReferenceRate
from carteira.data.market.base import ReferenceRateProvider

logger = logging.getLogger(__name__)
settings = get_settings()


def parse_sgs_response(payload) -> ReferenceRate:
    """Parse an SGS series response: ``[{"data": "dd/mm/yyyy", "valor": "10.50"}]``.

    Raises:
        MarketDataError: If the payload is empty or malformed
    """
    if not isinstance(payload, list) or not payload:
        raise MarketDataError("Reference rate response is empty")

    latest = payload[-1]
    try:
        value = Decimal(str(latest["valor"]).replace(",", "."))
        effective = datetime.strptime(latest["data"], "%d/%m/%Y").date()
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise MarketDataError(f"Malformed reference rate entry {latest!r}: {e}") from e

    return ReferenceRate(value=value, effective_date=effective)


class BCBReferenceRateProvider(ReferenceRateProvider):
    """SELIC rate provider backed by ``requests``."""

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None):
        self.url = url or settings.reference_rate_url
        self.timeout = timeout or settings.reference_rate_timeout

    def _get(self):
        response = requests.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def fetch_rate(self) -> ReferenceRate:
        try:
            payload = await asyncio.to_thread(self._get)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Reference rate fetch failed: {e}")
            raise MarketDataError(f"Reference rate unavailable: {e}") from e

        rate = parse_sgs_response(payload)
        logger.debug(f"Reference rate {rate.name}: {rate.value}% on {rate.effective_date}")
        return rate
