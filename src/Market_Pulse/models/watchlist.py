"""Watchlist models and the ``watchlist.conf`` parser.

The file format is one category per line::

    # comment
    INDICES: SPY, QQQ, DIA
    TECH: AAPL, MSFT, NVDA

Blank lines and ``#`` comments are ignored, as are lines with an empty
category or an empty ticker list.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, field_validator

from Market_Pulse.utils.exceptions import TotalDataError

logger = logging.getLogger(__name__)

CATEGORY_SEPARATOR: Final[str] = ":"
TICKER_SEPARATOR: Final[str] = ","
INDICES_CATEGORY: Final[str] = "INDICES"


class WatchlistCategory(BaseModel):
    """A named, ordered group of ticker symbols."""

    model_config = ConfigDict(frozen=True)

    name: str
    tickers: tuple[str, ...]

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            msg = "category name must not be empty"
            raise ValueError(msg)
        if CATEGORY_SEPARATOR in name or TICKER_SEPARATOR in name:
            msg = f"category name {name!r} must not contain ':' or ','"
            raise ValueError(msg)
        return name

    @field_validator("tickers")
    @classmethod
    def _normalize_tickers(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(t.strip().upper() for t in value if t.strip())

    @property
    def is_indices(self) -> bool:
        """True for the category rendered in the fixed Market Overview table."""
        return self.name == INDICES_CATEGORY


class Watchlist(BaseModel):
    """Ordered sequence of categories, loaded once per run."""

    model_config = ConfigDict(frozen=True)

    categories: tuple[WatchlistCategory, ...]

    @property
    def is_empty(self) -> bool:
        return not any(c.tickers for c in self.categories)

    def unique_tickers(self) -> list[str]:
        """All ticker symbols across categories, first occurrence order."""
        seen: dict[str, None] = {}
        for category in self.categories:
            for ticker in category.tickers:
                seen.setdefault(ticker, None)
        return list(seen)


def parse_watchlist(text: str) -> Watchlist:
    """Parse watchlist file contents into a ``Watchlist``.

    Raises:
        TotalDataError: If no usable category line is found or a category
            name is invalid.
    """
    categories: list[WatchlistCategory] = []
    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        name, sep, tickers_part = line.partition(CATEGORY_SEPARATOR)
        if not sep or not name.strip() or not tickers_part.strip():
            logger.debug("Skipping watchlist line %d: %r", lineno, raw_line)
            continue
        tickers = tuple(tickers_part.split(TICKER_SEPARATOR))
        try:
            category = WatchlistCategory(name=name, tickers=tickers)
        except ValueError as exc:
            msg = f"Invalid watchlist line {lineno}: {exc}"
            raise TotalDataError(msg) from exc
        if category.tickers:
            categories.append(category)

    watchlist = Watchlist(categories=tuple(categories))
    if watchlist.is_empty:
        msg = "Empty watchlist"
        raise TotalDataError(msg)
    return watchlist


def load_watchlist(path: Path) -> Watchlist:
    """Read and parse the watchlist at *path*.

    Raises:
        TotalDataError: If the file is missing, unreadable, or empty.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        msg = f"Watchlist not found: {path}"
        raise TotalDataError(msg) from exc
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Watchlist unreadable: {path}: {exc}"
        raise TotalDataError(msg) from exc

    watchlist = parse_watchlist(text)
    logger.info(
        "Loaded watchlist %s: %d categories, %d tickers",
        path,
        len(watchlist.categories),
        len(watchlist.unique_tickers()),
    )
    return watchlist
