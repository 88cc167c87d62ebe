"""Alert models -- condition variants and the alerts they trigger."""

from __future__ import annotations

from datetime import timedelta
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator

from core.duration import parse_duration


class _ThresholdCondition(BaseModel):
    value: float = Field(gt=0)
    message: str | None = None


class AboveCondition(_ThresholdCondition):
    """Fires once when the price rises to or above `value`."""

    type: Literal["above"] = "above"


class BelowCondition(_ThresholdCondition):
    """Fires once when the price falls to or below `value`."""

    type: Literal["below"] = "below"


class _ChangeCondition(_ThresholdCondition):
    period: str

    @field_validator("period")
    @classmethod
    def _check_period(cls, value: str) -> str:
        parse_duration(value)
        return value.strip()

    @property
    def duration(self) -> timedelta:
        return parse_duration(self.period)


class PercentChangeCondition(_ChangeCondition):
    """Fires once when the move over `period` reaches `value` percent."""

    type: Literal["percent_change"] = "percent_change"


class AbsoluteChangeCondition(_ChangeCondition):
    """Fires once when the move over `period` reaches `value` in price units."""

    type: Literal["absolute_change"] = "absolute_change"


AlertCondition = Annotated[
    Union[AboveCondition, BelowCondition, PercentChangeCondition, AbsoluteChangeCondition],
    Field(discriminator="type"),
]


class TriggeredAlert(BaseModel):
    """A condition that fired during this run and needs a notification."""

    ticker: str
    name: str = ""
    condition: AlertCondition
    price: float
    message: str

    @property
    def display_name(self) -> str:
        return self.name or self.ticker
