"""Condition evaluator -- decides fire / reset / no-op for one condition.

Each condition is a small state machine over a single boolean trigger flag.
A condition fires on the transition into its triggering predicate and then
stays quiet (hysteresis) until the flag is reset:

    above / below     reset once the price has moved back across the
                      threshold AND the previous run's price was still on
                      the triggered side
    percent_change /  reset as soon as the move over the period drops
    absolute_change   back under the threshold

The decision functions are pure; ConditionEvaluator wires them to the
StateStore.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import NamedTuple

from core.config import AlertConfig
from core.data.store import StateStore, alert_key
from core.models.alerts import (
    AboveCondition,
    AbsoluteChangeCondition,
    AlertCondition,
    BelowCondition,
    PercentChangeCondition,
    TriggeredAlert,
)
from core.models.market import Quote

logger = logging.getLogger(__name__)


class Decision(NamedTuple):
    """Outcome of evaluating one condition against one price."""

    fires: bool
    triggered: bool
    change: float | None = None


# ---------------------------------------------------------------------------
# Pure decisions
# ---------------------------------------------------------------------------

def decide_above(
    condition: AboveCondition,
    price: float,
    prior_price: float | None,
    triggered: bool,
) -> Decision:
    if price >= condition.value:
        if not triggered:
            return Decision(fires=True, triggered=True)
        return Decision(fires=False, triggered=True)

    if triggered and prior_price is not None and prior_price >= condition.value:
        return Decision(fires=False, triggered=False)
    return Decision(fires=False, triggered=triggered)


def decide_below(
    condition: BelowCondition,
    price: float,
    prior_price: float | None,
    triggered: bool,
) -> Decision:
    if price <= condition.value:
        if not triggered:
            return Decision(fires=True, triggered=True)
        return Decision(fires=False, triggered=True)

    if triggered and prior_price is not None and prior_price <= condition.value:
        return Decision(fires=False, triggered=False)
    return Decision(fires=False, triggered=triggered)


def _decide_change(threshold: float, change: float, magnitude: float, triggered: bool) -> Decision:
    if magnitude >= threshold:
        return Decision(fires=not triggered, triggered=True, change=change)
    return Decision(fires=False, triggered=False, change=change)


def decide_percent_change(
    condition: PercentChangeCondition,
    price: float,
    reference_price: float | None,
    triggered: bool,
) -> Decision:
    if reference_price is None or reference_price == 0:
        return Decision(fires=False, triggered=triggered)

    change = (price - reference_price) / reference_price * 100
    return _decide_change(condition.value, change, abs(change), triggered)


def decide_absolute_change(
    condition: AbsoluteChangeCondition,
    price: float,
    reference_price: float | None,
    triggered: bool,
) -> Decision:
    if reference_price is None:
        return Decision(fires=False, triggered=triggered)

    change = price - reference_price
    return _decide_change(condition.value, change, abs(change), triggered)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

def _direction(change: float) -> str:
    return "down" if change < 0 else "up"


def format_message(
    name: str,
    condition: AlertCondition,
    price: float,
    change: float | None = None,
) -> str:
    """Notification text for a fired condition; custom messages win."""
    if condition.message:
        return condition.message

    if isinstance(condition, (AboveCondition, BelowCondition)):
        return f"{name} is {condition.type} ${condition.value:.2f} (currently ${price:.2f})"

    change = change or 0.0
    if isinstance(condition, PercentChangeCondition):
        return (
            f"{name} moved {abs(change):.1f}% {_direction(change)} in {condition.period} "
            f"(currently ${price:.2f})"
        )
    return (
        f"{name} moved ${abs(change):.2f} {_direction(change)} in {condition.period} "
        f"(currently ${price:.2f})"
    )


# ---------------------------------------------------------------------------
# Stateful wrapper
# ---------------------------------------------------------------------------

class ConditionEvaluator:
    """Evaluates conditions against quotes, reading and writing trigger flags.

    Price history is read as left by the previous run; this run's prices are
    recorded only after every condition has been evaluated.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store

    def evaluate(
        self,
        alert: AlertConfig,
        condition: AlertCondition,
        quote: Quote,
        now: datetime,
    ) -> TriggeredAlert | None:
        ticker = alert.ticker
        key = alert_key(ticker, condition.type, condition.value)
        triggered = self._store.is_triggered(key)
        decision = self._decide(ticker, condition, quote.price, triggered, now)

        if decision.triggered != triggered:
            self._store.set_triggered(key, decision.triggered)
            logger.debug("%s -> %s", key, "triggered" if decision.triggered else "reset")

        if not decision.fires:
            return None

        return TriggeredAlert(
            ticker=ticker,
            name=alert.name,
            condition=condition,
            price=quote.price,
            message=format_message(alert.display_name, condition, quote.price, decision.change),
        )

    def _decide(
        self,
        ticker: str,
        condition: AlertCondition,
        price: float,
        triggered: bool,
        now: datetime,
    ) -> Decision:
        if isinstance(condition, AboveCondition):
            return decide_above(condition, price, self._store.last_price(ticker), triggered)
        if isinstance(condition, BelowCondition):
            return decide_below(condition, price, self._store.last_price(ticker), triggered)
        if isinstance(condition, PercentChangeCondition):
            reference = self._store.price_at(ticker, condition.duration, now)
            return decide_percent_change(condition, price, reference, triggered)
        if isinstance(condition, AbsoluteChangeCondition):
            reference = self._store.price_at(ticker, condition.duration, now)
            return decide_absolute_change(condition, price, reference, triggered)
        raise TypeError(f"Unsupported condition type: {type(condition).__name__}")
