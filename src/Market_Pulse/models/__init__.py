"""Pydantic v2 models, enums, and type definitions.

Re-exports all public models so consumers can import directly:
    from Market_Pulse.models import Quote, ReportSlot, MarketReport
"""

from Market_Pulse.models.enums import ReportSlot, RunOutcome, RunState, Trend
from Market_Pulse.models.market_data import Quote, compute_percent_change
from Market_Pulse.models.report import (
    AggregationResult,
    CategoryAggregate,
    CategoryReport,
    MarketReport,
    ProgressionPoint,
    RunSummary,
)
from Market_Pulse.models.watchlist import (
    INDICES_CATEGORY,
    Watchlist,
    WatchlistCategory,
    load_watchlist,
    parse_watchlist,
)

__all__ = [
    # Enums
    "ReportSlot",
    "RunOutcome",
    "RunState",
    "Trend",
    # Market data
    "Quote",
    "compute_percent_change",
    # Watchlist
    "INDICES_CATEGORY",
    "Watchlist",
    "WatchlistCategory",
    "load_watchlist",
    "parse_watchlist",
    # Report
    "AggregationResult",
    "CategoryAggregate",
    "CategoryReport",
    "MarketReport",
    "ProgressionPoint",
    "RunSummary",
]
