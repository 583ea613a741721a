"""Tests for the SELIC reference rate provider."""

from datetime import date
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests

from carteira.core.errors import MarketDataError
from carteira.data.market.rates import BCBReferenceRateProvider, parse_sgs_response


class TestParseSgsResponse:
    """Tests for parse_sgs_response."""

    def test_parses_latest_entry(self):
        rate = parse_sgs_response([
            {"data": "17/09/2026", "valor": "15.00"},
            {"data": "18/09/2026", "valor": "14.75"},
        ])

        assert rate.value == Decimal("14.75")
        assert rate.effective_date == date(2026, 9, 18)
        assert rate.name == "SELIC"

    def test_accepts_decimal_comma(self):
        assert parse_sgs_response([{"data": "01/02/2026", "valor": "10,50"}]).value == Decimal("10.50")

    @pytest.mark.parametrize(
        "payload",
        [[], {}, None, [{"data": "2026-02-01", "valor": "10"}], [{"valor": "10"}], [{"data": "01/02/2026", "valor": "abc"}]],
    )
    def test_malformed(self, payload):
        with pytest.raises(MarketDataError):
            parse_sgs_response(payload)


class TestBCBReferenceRateProvider:
    """Tests for BCBReferenceRateProvider."""

    @pytest.mark.asyncio
    async def test_fetch_rate(self):
        response = Mock()
        response.json.return_value = [{"data": "16/10/2026", "valor": "15.00"}]
        provider = BCBReferenceRateProvider(url="https://example.test/sgs", timeout=5)

        with patch("carteira.data.market.rates.requests.get", return_value=response) as mock_get:
            rate = await provider.fetch_rate()

        mock_get.assert_called_once_with("https://example.test/sgs", timeout=5)
        assert rate.value == Decimal("15.00")

    @pytest.mark.asyncio
    async def test_network_error(self):
        provider = BCBReferenceRateProvider(url="https://example.test/sgs")

        with patch(
            "carteira.data.market.rates.requests.get",
            side_effect=requests.ConnectionError("unreachable"),
        ):
            with pytest.raises(MarketDataError):
                await provider.fetch_rate()

    @pytest.mark.asyncio
    async def test_http_error(self):
        response = Mock()
        response.raise_for_status.side_effect = requests.HTTPError("503")
        provider = BCBReferenceRateProvider(url="https://example.test/sgs")

        with patch("carteira.data.market.rates.requests.get", return_value=response):
            with pytest.raises(MarketDataError):
                await provider.fetch_rate()
