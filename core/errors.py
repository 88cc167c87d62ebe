"""Error taxonomy for a single alert run.

Fatal errors abort the run and are reported by the CLI. The per-ticker and
per-alert errors are raised inside the collaborators and recovered there.
"""

from __future__ import annotations


class AlertsError(Exception):
    """Base class for all asset-alerts errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ConfigInvalid(AlertsError):
    """Raised when the configuration file is missing, unparsable or invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="CONFIG_INVALID")


class StateCorrupt(AlertsError):
    """Raised when the state document exists but cannot be read or parsed.

    The operator has to inspect or delete the file by hand.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            message=f"State file {path} is corrupt: {reason}",
            code="STATE_CORRUPT",
        )
        self.path = path


class StateSaveFailed(AlertsError):
    """Raised when the state document cannot be written."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to save state to {path}: {reason}",
            code="STATE_SAVE_FAILED",
        )
        self.path = path


class QuoteFetchFailed(AlertsError):
    """Raised when the quote for one ticker could not be fetched."""

    def __init__(self, ticker: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to fetch quote for {ticker}: {reason}",
            code="QUOTE_FETCH_FAILED",
        )
        self.ticker = ticker


class AllQuotesFailed(AlertsError):
    """Raised when no quote at all could be fetched for a run."""

    def __init__(self, tickers: list[str], last_error: str = "") -> None:
        message = f"All {len(tickers)} ticker(s) failed"
        if last_error:
            message += f", last error: {last_error}"
        super().__init__(message=message, code="ALL_QUOTES_FAILED")
        self.tickers = tickers


class NotificationSendFailed(AlertsError):
    """Raised when a single notification could not be delivered."""

    def __init__(self, ticker: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to send alert for {ticker}: {reason}",
            code="NOTIFICATION_SEND_FAILED",
        )
        self.ticker = ticker
