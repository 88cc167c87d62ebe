"""Yahoo Finance quote source -- fetches via httpx (no yfinance dependency).

Supports stocks, ETFs, indices, forex, crypto (Yahoo-style tickers).
Example tickers: AAPL, SPY, BTC-USD, EURUSD=X, GLD, TLT
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from core.errors import AllQuotesFailed, QuoteFetchFailed
from core.models.market import Quote

logger = logging.getLogger(__name__)

# Yahoo Finance chart API endpoint
_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{ticker}"

# Yahoo rejects requests without a browser-like User-Agent
_USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"


class YahooFinanceProvider:
    """Fetches current quotes from Yahoo Finance via their public chart API.

    Implements the QuoteSource protocol.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": _USER_AGENT},
        )

    @property
    def name(self) -> str:
        return "yahoo_finance"

    async def fetch_quotes(self, tickers: list[str]) -> dict[str, Quote]:
        """Fetch quotes one ticker at a time, tolerating individual failures."""
        quotes: dict[str, Quote] = {}
        last_error: QuoteFetchFailed | None = None

        for ticker in tickers:
            try:
                quotes[ticker] = await self.fetch_quote(ticker)
            except QuoteFetchFailed as exc:
                last_error = exc
                logger.warning("%s", exc.message)

        if not quotes and last_error is not None:
            raise AllQuotesFailed(list(tickers), last_error.message)

        return quotes

    async def fetch_quote(self, ticker: str) -> Quote:
        """Fetch the current price for a single ticker."""
        url = _CHART_URL.format(ticker=ticker)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise QuoteFetchFailed(ticker, str(exc)) from exc

        if response.status_code != 200:
            raise QuoteFetchFailed(ticker, f"unexpected status code: {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise QuoteFetchFailed(ticker, f"decoding response: {exc}") from exc

        chart = data.get("chart") if isinstance(data, dict) else None
        if not isinstance(chart, dict):
            raise QuoteFetchFailed(ticker, "response has no chart object")

        error = chart.get("error")
        if error:
            if isinstance(error, dict):
                error = f"{error.get('code', '')} - {error.get('description', '')}"
            raise QuoteFetchFailed(ticker, f"API error: {error}")

        result = chart.get("result")
        if not isinstance(result, list) or not result:
            raise QuoteFetchFailed(ticker, "no data returned")

        entry = result[0]
        meta = entry.get("meta") if isinstance(entry, dict) else None
        if not isinstance(meta, dict):
            raise QuoteFetchFailed(ticker, "response has no meta block")

        return self._parse_meta(ticker, meta)

    def _parse_meta(self, ticker: str, meta: dict) -> Quote:
        """Parse the chart `meta` block into a Quote."""
        price = meta.get("regularMarketPrice")
        if price is None:
            raise QuoteFetchFailed(ticker, "response has no regularMarketPrice")

        try:
            market_time = meta.get("regularMarketTime")
            fetched_at = (
                datetime.fromtimestamp(market_time, tz=timezone.utc)
                if market_time
                else datetime.now(timezone.utc)
            )
            return Quote(
                ticker=ticker,
                price=float(price),
                previous_close=meta.get("previousClose"),
                fetched_at=fetched_at,
            )
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            raise QuoteFetchFailed(ticker, f"malformed quote: {exc}") from exc

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
