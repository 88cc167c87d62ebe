"""JSON state store -- the only memory shared between independent runs.

One document holds three independent mappings:

    prices            ticker -> last PriceRecord
    triggered_alerts  composite alert key -> bool
    price_history     ticker -> PriceRecord list, oldest first

The document is loaded once per run, mutated in memory while alerts are
evaluated, and written back atomically at the end of the run. There is no
locking: two runs against the same file are last-writer-wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from core.errors import StateCorrupt, StateSaveFailed
from core.models.market import PriceRecord

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(days=7)


def alert_key(ticker: str, kind: str, value: float) -> str:
    """Composite trigger-flag key, e.g. ``BTC-USD:above:100000.00``.

    Thresholds are rounded to two decimals, so conditions of the same kind
    on the same ticker whose values round alike share a single flag.
    """
    return f"{ticker}:{kind}:{value:.2f}"


class PersistedState(BaseModel):
    """The persisted document."""

    prices: dict[str, PriceRecord] = Field(default_factory=dict)
    triggered_alerts: dict[str, bool] = Field(default_factory=dict)
    price_history: dict[str, list[PriceRecord]] = Field(default_factory=dict)


class StateStore:
    """Owns the PersistedState for the duration of one run.

    Usage:
        store = StateStore.load(path)
        ...evaluate alerts...
        store.record_price("BTC-USD", 105000.0, now)
        store.save()
    """

    def __init__(
        self,
        state: PersistedState | None = None,
        path: Path | None = None,
        retention: timedelta = DEFAULT_RETENTION,
    ) -> None:
        self.state = state or PersistedState()
        self._path = path
        self._retention = retention

    @classmethod
    def load(cls, path: str | Path, retention: timedelta = DEFAULT_RETENTION) -> StateStore:
        """Read the state document, or start fresh if it is missing or empty."""
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No state file at %s, starting fresh", path)
            return cls(path=path, retention=retention)
        except (OSError, UnicodeDecodeError) as exc:
            raise StateCorrupt(str(path), str(exc)) from exc

        if not raw.strip():
            logger.info("State file %s is empty, starting fresh", path)
            return cls(path=path, retention=retention)

        try:
            state = PersistedState.model_validate_json(raw)
        except ValidationError as exc:
            raise StateCorrupt(str(path), str(exc)) from exc

        logger.debug(
            "Loaded state from %s (%d tickers, %d alert flags)",
            path, len(state.prices), len(state.triggered_alerts),
        )
        return cls(state=state, path=path, retention=retention)

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def retention(self) -> timedelta:
        return self._retention

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    def record_price(self, ticker: str, price: float, now: datetime) -> None:
        """Store this run's price and prune history outside the retention window."""
        record = PriceRecord(price=price, timestamp=now)
        self.state.prices[ticker] = record

        history = self.state.price_history.setdefault(ticker, [])
        history.append(record)

        cutoff = now - self._retention
        self.state.price_history[ticker] = [r for r in history if r.timestamp >= cutoff]

    def last_price(self, ticker: str) -> float | None:
        """Price recorded by the previous run, if any."""
        record = self.state.prices.get(ticker)
        return record.price if record else None

    def history(self, ticker: str) -> list[PriceRecord]:
        return list(self.state.price_history.get(ticker, []))

    def price_at(self, ticker: str, ago: timedelta, now: datetime) -> float | None:
        """Most recent price recorded at least `ago` before `now`.

        Falls back to the oldest recorded price when nothing is that old.
        Returns None only when the ticker has no history at all.
        """
        history = self.state.price_history.get(ticker)
        if not history:
            return None

        target = now - ago
        closest: PriceRecord | None = None
        for record in history:
            if record.timestamp <= target:
                if closest is None or record.timestamp > closest.timestamp:
                    closest = record

        if closest is None:
            return history[0].price
        return closest.price

    # ------------------------------------------------------------------
    # Trigger flags
    # ------------------------------------------------------------------

    def is_triggered(self, key: str) -> bool:
        return self.state.triggered_alerts.get(key, False)

    def set_triggered(self, key: str, triggered: bool) -> None:
        self.state.triggered_alerts[key] = triggered

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: str | Path | None = None) -> Path:
        """Write the full document atomically (temp file + rename)."""
        target = Path(path) if path is not None else self._path
        if target is None:
            raise StateSaveFailed("<unset>", "no state path configured")

        payload = json.dumps(self.state.model_dump(mode="json"), indent=2)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StateSaveFailed(str(target), str(exc)) from exc

        logger.debug("State saved to %s", target)
        return target
