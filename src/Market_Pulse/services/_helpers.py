"""Shared helpers for service modules.

Safe Decimal conversion for loosely-typed provider payloads and the
retry-with-backoff wrapper used around every quote request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any, Final, TypeVar

from Market_Pulse.services.rate_limiter import RateLimiter
from Market_Pulse.utils.exceptions import (
    DataSourceUnavailableError,
    TickerNotFoundError,
    TransientFetchError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------

YFINANCE_SOURCE: Final[str] = "yfinance"
QUOTE_TIMEOUT_SECONDS: Final[float] = 20.0

QUOTE_ATTEMPTS: Final[int] = 2
BACKOFF_SECONDS: Final[tuple[float, ...]] = (1.0, 2.0)

_NON_NUMERIC: Final[frozenset[str]] = frozenset(
    {"", "none", "nan", "inf", "-inf", "infinity", "-infinity"}
)


def safe_decimal(value: object) -> Decimal | None:
    """Decimal from a provider value, going through ``str`` to keep precision.

    ``None`` for missing, non-finite or unparseable values, so "no data"
    never reads as a real zero.
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if text.lower() in _NON_NUMERIC:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _backoff_for(attempt: int, backoff: Sequence[float]) -> float:
    if not backoff:
        return 0.0
    return backoff[min(attempt, len(backoff)) - 1]


async def fetch_with_retry(
    fetch_fn: Callable[[], Coroutine[Any, Any, T]],
    *,
    rate_limiter: RateLimiter,
    ticker: str,
    source: str,
    label: str,
    attempts: int = QUOTE_ATTEMPTS,
    backoff: Sequence[float] = BACKOFF_SECONDS,
) -> T:
    """Await *fetch_fn* under *rate_limiter*, retrying provider failures.

    yfinance raises inconsistent exception types, so anything other than
    the two ticker-level errors counts as a provider failure and is
    retried after the ``backoff`` delay for that attempt.

    Raises:
        TickerNotFoundError: Re-raised immediately.
        TransientFetchError: Re-raised immediately.
        DataSourceUnavailableError: Every attempt failed.
    """
    reason = "no attempts made"
    for attempt in range(1, attempts + 1):
        try:
            async with rate_limiter:
                return await fetch_fn()
        except (TickerNotFoundError, TransientFetchError):
            raise
        except Exception as exc:  # noqa: BLE001
            reason = "timed out" if isinstance(exc, TimeoutError) else str(exc) or repr(exc)
            logger.warning("%s attempt %d/%d failed: %s", label, attempt, attempts, reason)

        if attempt < attempts:
            await asyncio.sleep(_backoff_for(attempt, backoff))

    raise DataSourceUnavailableError(
        f"{label} unavailable after {attempts} attempts: {reason}",
        ticker=ticker,
        source=source,
    )
