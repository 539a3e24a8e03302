"""Custom exception hierarchy for the Market Pulse application.

Two families live here:

* ``DataFetchError`` and its subclasses describe a single ticker failing to
  fetch.  They never cross the aggregation boundary; the quote service turns
  them into a Missing quote.
* ``RunError`` and its subclasses describe a whole report run failing.  They
  propagate to the orchestrator, which retries the entire run.
"""


class DataFetchError(Exception):
    """Base exception for all data-fetching failures.

    Attributes:
        ticker: The ticker symbol involved in the failure.
        source: The data source that failed (e.g., "yfinance").
        http_status: The HTTP status code, if the failure was HTTP-related.
    """

    def __init__(
        self,
        message: str,
        *,
        ticker: str,
        source: str,
        http_status: int | None = None,
    ) -> None:
        self.ticker = ticker
        self.source = source
        self.http_status = http_status
        super().__init__(message)


class TickerNotFoundError(DataFetchError):
    """Raised when a ticker symbol does not exist in the data source."""


class DataSourceUnavailableError(DataFetchError):
    """Raised when a data source is unreachable or returning errors."""


class TransientFetchError(DataFetchError):
    """Raised when a quote payload is incomplete (no price or previous close)."""


class RunError(Exception):
    """Base exception for failures that abort a report run attempt."""


class TotalDataError(RunError):
    """Raised when the watchlist is unreadable/empty or no quote could be fetched."""


class DeliveryError(RunError):
    """Raised when the rendered report could not be handed to the transport."""


class ConfigError(Exception):
    """Raised when configuration values are malformed."""


class InsightUnavailableError(Exception):
    """Raised inside the insight service when commentary cannot be produced.

    Attributes:
        reason: Short human-readable reason used in the placeholder text.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)
