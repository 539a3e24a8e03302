"""Shared test fixtures for the Market Pulse test suite.

Provides a small realistic watchlist and matching quotes so tests don't
need to inline large construction blocks.
"""

import datetime
from decimal import Decimal
from pathlib import Path

import pytest

from Market_Pulse.analysis import aggregate, assemble_report, build_insight_dataset
from Market_Pulse.models import MarketReport, Quote, ReportSlot, Watchlist, WatchlistCategory

WATCHLIST_TEXT: str = """\
# Indices first, then sectors
INDICES: SPY, QQQ
TECH: AAPL, MSFT
ENERGY: XOM, CVX
"""


@pytest.fixture()
def tech_watchlist() -> Watchlist:
    """The single-category watchlist ``TECH: AAPL, MSFT``."""
    return Watchlist(categories=(WatchlistCategory(name="TECH", tickers=("AAPL", "MSFT")),))


@pytest.fixture()
def tech_quotes() -> dict[str, Quote | None]:
    """AAPL 148 -> 150 (+1.35%) and MSFT 305 -> 300 (-1.64%)."""
    return {
        "AAPL": Quote.from_prices("AAPL", Decimal("150"), Decimal("148")),
        "MSFT": Quote.from_prices("MSFT", Decimal("300"), Decimal("305")),
    }


@pytest.fixture()
def full_watchlist() -> Watchlist:
    """Three categories including INDICES."""
    return Watchlist(
        categories=(
            WatchlistCategory(name="INDICES", tickers=("SPY", "QQQ")),
            WatchlistCategory(name="TECH", tickers=("AAPL", "MSFT")),
            WatchlistCategory(name="ENERGY", tickers=("XOM", "CVX")),
        )
    )


@pytest.fixture()
def full_quotes(tech_quotes: dict[str, Quote | None]) -> dict[str, Quote | None]:
    """Quotes for ``full_watchlist``; CVX failed to fetch."""
    return {
        "SPY": Quote.from_prices("SPY", Decimal("502.10"), Decimal("500.00")),
        "QQQ": Quote.from_prices("QQQ", Decimal("430.00"), Decimal("430.10")),
        **tech_quotes,
        "XOM": Quote.from_prices("XOM", Decimal("112.00"), Decimal("110.00")),
        "CVX": None,
    }


@pytest.fixture()
def watchlist_file(tmp_path: Path) -> Path:
    """A watchlist.conf written to a temp dir."""
    path = tmp_path / "watchlist.conf"
    path.write_text(WATCHLIST_TEXT, encoding="utf-8")
    return path


@pytest.fixture()
def trading_day() -> datetime.date:
    """A regular Tuesday session."""
    return datetime.date(2025, 3, 11)


@pytest.fixture()
def sample_report(full_watchlist: Watchlist, full_quotes: dict[str, Quote | None]) -> MarketReport:
    """A close report for ``full_watchlist`` with TECH open/midday history and insights."""
    result = aggregate(full_watchlist, full_quotes)
    progression = {
        ("TECH", ReportSlot.OPEN): Decimal("0.40"),
        ("TECH", ReportSlot.MIDDAY): Decimal("-0.20"),
    }
    report = assemble_report(
        ReportSlot.CLOSE,
        result,
        progression,
        insight_dataset=build_insight_dataset(full_watchlist, full_quotes),
        generated_at=datetime.datetime(2025, 3, 11, 16, 5),
    )
    return report.with_insights("**Energy** led while tech lagged.\nWatch yields.")
