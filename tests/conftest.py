"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest

from core.config import AppConfig
from core.data.store import StateStore
from core.errors import AllQuotesFailed
from core.models.market import Quote
from core.protocols import DeliveryResult

NOW = datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc)


class FakeQuoteSource:
    """QuoteSource returning fixed prices; unknown tickers count as failures."""

    name = "fake_quotes"

    def __init__(self, prices: dict[str, float]) -> None:
        self.prices = prices
        self.requested: list[list[str]] = []

    async def fetch_quotes(self, tickers: list[str]) -> dict[str, Quote]:
        self.requested.append(list(tickers))
        quotes = {
            t: Quote(ticker=t, price=self.prices[t], fetched_at=NOW)
            for t in tickers
            if t in self.prices
        }
        if not quotes:
            raise AllQuotesFailed(list(tickers), "no prices configured")
        return quotes


class FakeSink:
    """NotificationSink that records every call."""

    name = "fake_sink"

    def __init__(self, fail_tickers: set[str] | None = None) -> None:
        self.fail_tickers = fail_tickers or set()
        self.sent: list[tuple[str, str, str, float]] = []

    async def send(self, ticker: str, name: str, message: str, price: float) -> DeliveryResult:
        self.sent.append((ticker, name, message, price))
        if ticker in self.fail_tickers:
            return DeliveryResult(success=False, adapter=self.name, message="boom")
        return DeliveryResult(success=True, adapter=self.name, message="Delivered")


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "state.json"


@pytest.fixture
def store(state_path) -> StateStore:
    return StateStore(path=state_path)


@pytest.fixture
def make_config():
    """Build an AppConfig from a list of raw alert dicts."""

    def _make(alerts: list[dict], **extra) -> AppConfig:
        return AppConfig(
            ntfy={"server": "https://ntfy.example.com", "topic": "alerts"},
            alerts=alerts,
            **extra,
        )

    return _make
