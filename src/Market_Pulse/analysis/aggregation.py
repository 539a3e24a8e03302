"""Single-pass aggregation of a run's quotes into category and summary statistics.

``aggregate`` is a pure function: it walks the watchlist once, in order, and
returns an immutable ``AggregationResult``.  Missing quotes (``None`` or an
absent key) are excluded from every statistic.

Tie-breaking for best/worst uses strict comparisons, so the first ticker or
category encountered in watchlist order keeps the title on equal values.
The INDICES category takes part in breadth and best/worst ticker, but not in
best/worst category.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import ROUND_HALF_EVEN, Decimal

from Market_Pulse.models.enums import Trend
from Market_Pulse.models.market_data import Quote
from Market_Pulse.models.report import AggregationResult, CategoryAggregate, RunSummary
from Market_Pulse.models.watchlist import Watchlist, WatchlistCategory

logger = logging.getLogger(__name__)


class _Extreme:
    """Running best/worst tracker with first-wins tie-breaking."""

    def __init__(self) -> None:
        self.best_name: str | None = None
        self.best_value: Decimal | None = None
        self.worst_name: str | None = None
        self.worst_value: Decimal | None = None

    def observe(self, name: str, value: Decimal) -> None:
        if self.best_value is None or value > self.best_value:
            self.best_name, self.best_value = name, value
        if self.worst_value is None or value < self.worst_value:
            self.worst_name, self.worst_value = name, value


def aggregate_category(
    category: WatchlistCategory,
    quotes: Mapping[str, Quote | None],
) -> CategoryAggregate | None:
    """Aggregate one category, or ``None`` if none of its tickers were fetched."""
    present: list[Quote] = []
    for ticker in category.tickers:
        quote = quotes.get(ticker)
        if quote is None:
            logger.warning("No quote for %s in %s, excluding from aggregates", ticker, category.name)
            continue
        present.append(quote)

    if not present:
        logger.warning("Category %s has no fetched tickers, omitting", category.name)
        return None

    # sorted() is stable: equal moves keep watchlist order
    ordered = sorted(present, key=lambda q: q.percent_change, reverse=True)
    total = sum((q.percent_change for q in present), Decimal("0"))
    return CategoryAggregate(
        category=category.name,
        tickers=tuple(ordered),
        average_percent=total / len(present),
        member_count=len(present),
    )


def breadth_percentages(up: int, down: int, flat: int) -> tuple[int, int, int]:
    """Whole-number up/down/flat percentages that always sum to 100.

    Up and down are rounded half-to-even; flat absorbs the remainder.  With
    no tickers at all, every percentage is 0.
    """
    total = up + down + flat
    if total == 0:
        return 0, 0, 0
    up_pct = int((Decimal(100 * up) / total).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))
    down_pct = int((Decimal(100 * down) / total).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))
    return up_pct, down_pct, 100 - up_pct - down_pct


def aggregate(
    watchlist: Watchlist,
    quotes: Mapping[str, Quote | None],
) -> AggregationResult:
    """Compute per-category aggregates and the run summary.

    Args:
        watchlist: Categories and tickers, in display order.
        quotes: Ticker -> Quote, with ``None`` (or no entry) for a failed fetch.

    Returns:
        ``AggregationResult`` with the INDICES aggregate split out, the
        remaining category aggregates in watchlist order, and the summary.
    """
    indices: CategoryAggregate | None = None
    categories: list[CategoryAggregate] = []
    ticker_extreme = _Extreme()
    category_extreme = _Extreme()
    counts: dict[Trend, int] = {Trend.UP: 0, Trend.DOWN: 0, Trend.FLAT: 0}

    for category in watchlist.categories:
        result = aggregate_category(category, quotes)
        if result is None:
            continue

        # Iterate in watchlist order (not sorted order) for tie-breaking
        for ticker in category.tickers:
            quote = quotes.get(ticker)
            if quote is None:
                continue
            ticker_extreme.observe(quote.ticker, quote.percent_change)
            counts[quote.trend] += 1

        if category.is_indices:
            indices = result
            continue

        category_extreme.observe(result.category, result.average_percent)
        categories.append(result)

    up_pct, down_pct, flat_pct = breadth_percentages(
        counts[Trend.UP], counts[Trend.DOWN], counts[Trend.FLAT]
    )
    summary = RunSummary(
        best_ticker=ticker_extreme.best_name,
        best_ticker_pct=ticker_extreme.best_value,
        worst_ticker=ticker_extreme.worst_name,
        worst_ticker_pct=ticker_extreme.worst_value,
        best_category=category_extreme.best_name,
        best_category_pct=category_extreme.best_value,
        worst_category=category_extreme.worst_name,
        worst_category_pct=category_extreme.worst_value,
        advancers=counts[Trend.UP],
        decliners=counts[Trend.DOWN],
        unchanged=counts[Trend.FLAT],
        breadth_up_pct=up_pct,
        breadth_down_pct=down_pct,
        breadth_flat_pct=flat_pct,
    )
    logger.info(
        "Aggregated %d categories: %d up / %d down / %d flat",
        len(categories),
        summary.advancers,
        summary.decliners,
        summary.unchanged,
    )
    return AggregationResult(indices=indices, categories=tuple(categories), summary=summary)
