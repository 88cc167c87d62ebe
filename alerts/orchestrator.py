"""Alert orchestrator -- runs every configured condition against this run's quotes."""

from __future__ import annotations

import logging
from datetime import datetime

from alerts.evaluator import ConditionEvaluator
from core.config import AlertConfig
from core.data.store import StateStore
from core.models.alerts import TriggeredAlert
from core.models.market import Quote

logger = logging.getLogger(__name__)


class AlertOrchestrator:
    """Evaluates (ticker, condition) pairs in configuration order.

    Tickers without a quote this run are skipped; a fetch failure for one
    asset never blocks the others.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store
        self._evaluator = ConditionEvaluator(store)

    def evaluate(
        self,
        alerts: list[AlertConfig],
        quotes: dict[str, Quote],
        now: datetime,
    ) -> list[TriggeredAlert]:
        triggered: list[TriggeredAlert] = []

        for alert in alerts:
            quote = quotes.get(alert.ticker)
            if quote is None:
                logger.debug("No quote for %s, skipping %d condition(s)", alert.ticker, len(alert.conditions))
                continue

            for condition in alert.conditions:
                result = self._evaluator.evaluate(alert, condition, quote, now)
                if result is not None:
                    logger.info("Alert triggered: %s - %s", result.ticker, result.message)
                    triggered.append(result)

        return triggered

    def record_prices(self, quotes: dict[str, Quote], now: datetime) -> None:
        """Persist this run's prices for the next run's comparisons."""
        for ticker, quote in quotes.items():
            self._store.record_price(ticker, quote.price, now)
