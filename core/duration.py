"""Duration parsing helpers for configuration values."""

from __future__ import annotations

import re
from datetime import timedelta

_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d)", re.IGNORECASE)
_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
}


def parse_duration(value: str) -> timedelta:
    """Parse compact duration strings like '60s', '4h', '7d' or '1h30m'."""
    text = str(value or "").strip().lower()
    if not text:
        raise ValueError(f"Invalid duration: {value!r}. Expected '<number><ms|s|m|h|d>'.")

    seconds = 0.0
    pos = 0
    for match in _PART_RE.finditer(text):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos != len(text):
        raise ValueError(f"Invalid duration: {value!r}. Expected '<number><ms|s|m|h|d>'.")
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")

    return timedelta(seconds=seconds)
