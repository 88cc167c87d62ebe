"""Core protocols -- the two collaborators an alert run talks to.

The core imports these protocols. Plugins implement them.
The core NEVER imports concrete implementations.

All protocols use Python's structural subtyping (typing.Protocol):
if your class has the right methods, it implements the protocol.
No inheritance required.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.models.market import Quote


# ---------------------------------------------------------------------------
# 1. QuoteSource -- fetch current prices
# ---------------------------------------------------------------------------

@runtime_checkable
class QuoteSource(Protocol):
    """Fetches the current price of each requested ticker.

    Default implementation: YahooFinanceProvider.
    """

    @property
    def name(self) -> str:
        """Unique provider name, e.g. 'yahoo_finance'."""
        ...

    async def fetch_quotes(self, tickers: list[str]) -> dict[str, Quote]:
        """Return a quote per ticker that could be fetched.

        Tickers missing from the result failed for this run and are
        skipped. Raises AllQuotesFailed when no ticker could be fetched.
        """
        ...


# ---------------------------------------------------------------------------
# 2. NotificationSink -- deliver triggered alerts
# ---------------------------------------------------------------------------

@runtime_checkable
class NotificationSink(Protocol):
    """Delivers one alert notification to an external destination.

    Default implementation: NtfySender.
    """

    @property
    def name(self) -> str:
        """Unique adapter name, e.g. 'ntfy'."""
        ...

    async def send(self, ticker: str, name: str, message: str, price: float) -> DeliveryResult:
        """Deliver a notification. Never raises for delivery failures."""
        ...


class DeliveryResult:
    """Result of a NotificationSink.send() call."""

    def __init__(self, success: bool, adapter: str, message: str = ""):
        self.success = success
        self.adapter = adapter
        self.message = message

    def __repr__(self) -> str:
        status = "ok" if self.success else "failed"
        return f"DeliveryResult({status}, {self.adapter})"
