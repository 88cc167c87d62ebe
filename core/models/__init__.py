"""Pydantic data models shared across all components."""

from core.models.alerts import (
    AboveCondition,
    AbsoluteChangeCondition,
    AlertCondition,
    BelowCondition,
    PercentChangeCondition,
    TriggeredAlert,
)
from core.models.market import PriceRecord, Quote

__all__ = [
    "AboveCondition",
    "AbsoluteChangeCondition",
    "AlertCondition",
    "BelowCondition",
    "PercentChangeCondition",
    "TriggeredAlert",
    "PriceRecord",
    "Quote",
]
