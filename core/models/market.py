"""Market data models -- quotes and recorded price points."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class PriceRecord(BaseModel):
    """A price observed at a point in time. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    price: float
    timestamp: AwareDatetime


class Quote(BaseModel):
    """The current price of a ticker as returned by a quote source."""

    ticker: str
    price: float
    previous_close: float | None = None
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
