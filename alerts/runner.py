"""Alert run -- one load -> fetch -> evaluate -> notify -> save cycle.

Each invocation:
1. Fetches quotes for every configured ticker
2. Evaluates all conditions against the previous run's state
3. Sends a notification per triggered alert (unless dry-run)
4. Records this run's prices and saves the state document

A fatal fetch failure (no quotes at all) aborts before state is touched.
Failed notifications are logged and counted; state is still saved.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from alerts.orchestrator import AlertOrchestrator
from core.config import AppConfig
from core.data.store import StateStore
from core.models.alerts import TriggeredAlert
from core.protocols import NotificationSink, QuoteSource

logger = logging.getLogger(__name__)


class RunReport(BaseModel):
    """Summary of a single alert run."""

    triggered: list[TriggeredAlert] = Field(default_factory=list)
    quotes: int = 0
    sent: int = 0
    failed: int = 0
    dry_run: bool = False


async def run_once(
    config: AppConfig,
    store: StateStore,
    quote_source: QuoteSource,
    sink: NotificationSink | None,
    dry_run: bool = False,
    now: datetime | None = None,
) -> RunReport:
    """Run one full alert cycle and persist the resulting state."""
    now = now or datetime.now(timezone.utc)

    tickers = config.unique_tickers()
    logger.info("Fetching prices for %d tickers: %s", len(tickers), ", ".join(tickers))
    quotes = await quote_source.fetch_quotes(tickers)

    for ticker, quote in quotes.items():
        logger.debug("%s: $%.2f", ticker, quote.price)

    orchestrator = AlertOrchestrator(store)
    triggered = orchestrator.evaluate(config.alerts, quotes, now)
    logger.info("Triggered %d alerts", len(triggered))

    report = RunReport(triggered=triggered, quotes=len(quotes), dry_run=dry_run)

    if triggered and not dry_run:
        if sink is None:
            raise ValueError("A notification sink is required unless dry_run is set")
        for alert in triggered:
            logger.debug("Sending alert: %s - %s", alert.ticker, alert.message)
            result = await sink.send(alert.ticker, alert.name, alert.message, alert.price)
            if result.success:
                report.sent += 1
            else:
                report.failed += 1
                logger.warning("Alert for %s not delivered via %s: %s", alert.ticker, result.adapter, result.message)

    # Dry runs still advance the stored prices and trigger flags.
    orchestrator.record_prices(quotes, now)
    store.save()

    return report
