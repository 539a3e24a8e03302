"""Quote service wrapping yfinance for current price and previous close.

All yfinance calls are synchronous and wrapped in ``asyncio.to_thread()``
under an ``asyncio.wait_for`` timeout.  Results are converted to typed
``Quote`` models before returning.  Rate limiting via ``RateLimiter`` bounds
the watchlist fan-out.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from decimal import Decimal

import yfinance as yf  # type: ignore[import-untyped]

from Market_Pulse.models.market_data import Quote
from Market_Pulse.services._helpers import (
    QUOTE_TIMEOUT_SECONDS,
    YFINANCE_SOURCE,
    fetch_with_retry,
    safe_decimal,
)
from Market_Pulse.services.rate_limiter import RateLimiter
from Market_Pulse.utils.exceptions import (
    DataFetchError,
    TickerNotFoundError,
    TransientFetchError,
)

logger = logging.getLogger(__name__)

# Keys tried in order; yfinance fills different ones for equities, ETFs and indices
PRICE_KEYS: tuple[str, ...] = ("regularMarketPrice", "currentPrice")
PREVIOUS_CLOSE_KEYS: tuple[str, ...] = (
    "regularMarketPreviousClose",
    "previousClose",
    "chartPreviousClose",
)


class QuoteService:
    """Async quote source backed by yfinance.

    Usage::

        service = QuoteService(rate_limiter=RateLimiter())
        quote = await service.fetch_quote("AAPL")
        quotes = await service.fetch_quotes(["AAPL", "MSFT", "^GSPC"])
    """

    def __init__(self, rate_limiter: RateLimiter) -> None:
        self._rate_limiter = rate_limiter

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_quote(self, ticker: str) -> Quote:
        """Fetch price and previous close for *ticker*.

        Raises:
            TickerNotFoundError: If yfinance returns no data for the symbol.
            TransientFetchError: If the payload lacks a price or previous close.
            DataSourceUnavailableError: If yfinance keeps failing.
        """
        ticker = ticker.upper().strip()
        quote = await fetch_with_retry(
            lambda: self._fetch_once(ticker),
            rate_limiter=self._rate_limiter,
            ticker=ticker,
            source=YFINANCE_SOURCE,
            label=f"Quote({ticker})",
        )
        logger.info("Fetched %s: %s (%s%%)", ticker, quote.price, quote.percent_change)
        return quote

    async def fetch_quotes(self, tickers: Iterable[str]) -> dict[str, Quote | None]:
        """Fetch quotes for many tickers concurrently.

        A failed ticker maps to ``None`` (Missing) and is logged; it never
        raises.  Uses ``asyncio.gather(..., return_exceptions=True)`` so one
        failure does not crash the batch.
        """
        symbols = list(dict.fromkeys(t.upper().strip() for t in tickers if t.strip()))
        results: list[Quote | BaseException] = await asyncio.gather(
            *(self.fetch_quote(t) for t in symbols), return_exceptions=True
        )

        quotes: dict[str, Quote | None] = {}
        for ticker, result in zip(symbols, results, strict=True):
            if isinstance(result, DataFetchError):
                logger.error("Failed to fetch %s: %s", ticker, result)
                quotes[ticker] = None
            elif isinstance(result, Exception):
                logger.error("Unexpected error fetching %s: %r", ticker, result)
                quotes[ticker] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                quotes[ticker] = result

        fetched = sum(1 for q in quotes.values() if q is not None)
        logger.info("Quote fetch complete: %d succeeded, %d failed", fetched, len(quotes) - fetched)
        return quotes

    # ------------------------------------------------------------------
    # Raw yfinance call (sync, wrapped in asyncio.to_thread)
    # ------------------------------------------------------------------

    async def _fetch_once(self, ticker: str) -> Quote:
        """One request plus conversion; ticker-level errors end the retry loop."""
        info = await self._fetch_raw_info(ticker)
        return self._info_to_quote(info, ticker)

    async def _fetch_raw_info(self, ticker: str) -> dict[str, object]:
        """Fetch the raw info dict from yfinance in a thread."""

        def _sync_fetch() -> dict[str, object]:
            info: dict[str, object] = yf.Ticker(ticker).info
            return info

        return await asyncio.wait_for(
            asyncio.to_thread(_sync_fetch),
            timeout=QUOTE_TIMEOUT_SECONDS,
        )

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _info_to_quote(info: dict[str, object], ticker: str) -> Quote:
        """Build a ``Quote`` from a yfinance info dict."""
        if not info:
            raise TickerNotFoundError(
                f"Empty info dict for ticker '{ticker}'",
                ticker=ticker,
                source=YFINANCE_SOURCE,
            )

        price = _first_decimal(info, PRICE_KEYS)
        previous_close = _first_decimal(info, PREVIOUS_CLOSE_KEYS)
        if price is None or previous_close is None:
            raise TransientFetchError(
                f"Incomplete quote for '{ticker}' (price={price}, previous_close={previous_close})",
                ticker=ticker,
                source=YFINANCE_SOURCE,
            )
        return Quote.from_prices(ticker, price, previous_close)


def _first_decimal(info: dict[str, object], keys: tuple[str, ...]) -> Decimal | None:
    for key in keys:
        value = safe_decimal(info.get(key))
        if value is not None:
            return value
    return None
