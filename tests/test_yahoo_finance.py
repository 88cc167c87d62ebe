"""Tests for YahooFinanceProvider (mocked HTTP)."""

from datetime import datetime, timezone

import httpx
import pytest

from core.errors import AllQuotesFailed, QuoteFetchFailed
from core.protocols import QuoteSource
from plugins.market_data.yahoo_finance import YahooFinanceProvider


def _chart(symbol: str, price: object, market_time: int = 1772465400) -> dict:
    meta = {"symbol": symbol, "previousClose": 100.0, "regularMarketTime": market_time}
    if price is not None:
        meta["regularMarketPrice"] = price
    return {"chart": {"result": [{"meta": meta}], "error": None}}


def _provider(routes: dict[str, httpx.Response]) -> YahooFinanceProvider:
    def handler(request: httpx.Request) -> httpx.Response:
        ticker = request.url.path.rsplit("/", 1)[-1]
        if ticker in routes:
            return routes[ticker]
        return httpx.Response(404, json={"chart": {"result": None, "error": {"code": "Not Found"}}})

    return YahooFinanceProvider(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
class TestYahooFinanceProvider:
    """Quote fetching and partial failure handling."""

    async def test_implements_protocol(self):
        """Test that the provider satisfies the QuoteSource protocol."""
        provider = _provider({})
        assert isinstance(provider, QuoteSource)
        await provider.close()

    async def test_parses_chart_meta(self):
        """Test that price, previous close and market time are read."""
        provider = _provider({"BTC-USD": httpx.Response(200, json=_chart("BTC-USD", 105000.5))})

        quote = await provider.fetch_quote("BTC-USD")

        assert quote.ticker == "BTC-USD"
        assert quote.price == 105000.5
        assert quote.previous_close == 100.0
        assert quote.fetched_at == datetime.fromtimestamp(1772465400, tz=timezone.utc)

    async def test_partial_failure(self):
        """Test that failed tickers are left out of the result."""
        provider = _provider({"AAPL": httpx.Response(200, json=_chart("AAPL", 190.0))})

        quotes = await provider.fetch_quotes(["AAPL", "NOPE"])

        assert list(quotes) == ["AAPL"]

    async def test_malformed_ticker_does_not_abort_batch(self):
        """Test that a malformed payload for one ticker leaves the others intact."""
        provider = _provider({
            "AAPL": httpx.Response(200, json=_chart("AAPL", 190.0)),
            "BAD": httpx.Response(200, json={"chart": {"result": [None]}}),
        })

        quotes = await provider.fetch_quotes(["AAPL", "BAD"])

        assert list(quotes) == ["AAPL"]
        assert quotes["AAPL"].price == 190.0

    async def test_all_failed(self):
        """Test that AllQuotesFailed is raised when nothing could be fetched."""
        provider = _provider({})

        with pytest.raises(AllQuotesFailed) as exc_info:
            await provider.fetch_quotes(["NOPE", "ALSO-NOPE"])

        assert exc_info.value.tickers == ["NOPE", "ALSO-NOPE"]

    async def test_no_tickers(self):
        """Test that an empty request is not a failure."""
        assert await _provider({}).fetch_quotes([]) == {}

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500),
            httpx.Response(200, text="<html>"),
            httpx.Response(200, json={"chart": {"result": [], "error": None}}),
            httpx.Response(200, json={"chart": {"result": None, "error": {"code": "Bad", "description": "x"}}}),
            httpx.Response(200, json=_chart("AAPL", None)),
            httpx.Response(200, json=[]),
            httpx.Response(200, json={"chart": {"result": [None]}}),
            httpx.Response(200, json={"chart": {"result": [{"meta": None}]}}),
            httpx.Response(200, json={"chart": {"error": "boom"}}),
            httpx.Response(200, json=_chart("AAPL", "n/a")),
        ],
    )
    async def test_bad_responses(self, response):
        """Test that malformed or failed responses raise QuoteFetchFailed."""
        provider = _provider({"AAPL": response})

        with pytest.raises(QuoteFetchFailed):
            await provider.fetch_quote("AAPL")

    async def test_transport_error(self):
        """Test that network errors become QuoteFetchFailed."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        provider = YahooFinanceProvider(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

        with pytest.raises(QuoteFetchFailed):
            await provider.fetch_quote("AAPL")
