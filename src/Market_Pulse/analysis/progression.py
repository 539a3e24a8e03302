"""Report assembly: merge this run's aggregates with earlier same-day slots.

The progression for a category only ever looks backwards in the day:

* open   -> nothing
* midday -> open
* close  -> midday, then open (most recent first)

A slot that has not been recorded yet is simply left out; nothing is
back-filled.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping
from decimal import Decimal

from Market_Pulse.models.enums import ReportSlot
from Market_Pulse.models.market_data import Quote
from Market_Pulse.models.report import (
    AggregationResult,
    CategoryReport,
    MarketReport,
    ProgressionPoint,
)
from Market_Pulse.models.watchlist import Watchlist

logger = logging.getLogger(__name__)

ProgressionMap = Mapping[tuple[str, ReportSlot], Decimal]

# Earlier slots shown for each report, in display order
PRIOR_SLOTS: dict[ReportSlot, tuple[ReportSlot, ...]] = {
    ReportSlot.OPEN: (),
    ReportSlot.MIDDAY: (ReportSlot.OPEN,),
    ReportSlot.CLOSE: (ReportSlot.MIDDAY, ReportSlot.OPEN),
}


def progression_for(
    slot: ReportSlot,
    category: str,
    progression: ProgressionMap,
) -> tuple[ProgressionPoint, ...]:
    """Earlier-slot averages for *category* relevant to a *slot* report."""
    points: list[ProgressionPoint] = []
    for prior in PRIOR_SLOTS[slot]:
        value = progression.get((category, prior))
        if value is not None:
            points.append(ProgressionPoint(slot=prior, average_percent=value))
    return tuple(points)


def build_insight_dataset(watchlist: Watchlist, quotes: Mapping[str, Quote | None]) -> str:
    """Plain-text dataset for the insight generator, one line per fetched ticker.

    Format: ``CATEGORY:TICKER: $price (pct%)``.
    """
    lines: list[str] = []
    for category in watchlist.categories:
        for ticker in category.tickers:
            quote = quotes.get(ticker)
            if quote is None:
                continue
            lines.append(f"{category.name}:{ticker}: ${quote.price} ({quote.percent_change}%)")
    return "\n".join(lines)


def assemble_report(
    slot: ReportSlot,
    result: AggregationResult,
    progression: ProgressionMap,
    *,
    insight_dataset: str,
    generated_at: datetime.datetime,
    test_mode: bool = False,
) -> MarketReport:
    """Build the structured report handed to the renderers.

    Args:
        slot: The slot this run reports on.
        result: Output of ``aggregate`` for this run.
        progression: Day's store contents as loaded *before* this run's
            own averages were appended.
        insight_dataset: Plain-text dataset passed to the insight generator.
        generated_at: Local timestamp shown in the header.
        test_mode: Marks reports that are printed instead of delivered.
    """
    category_reports = tuple(
        CategoryReport(
            aggregate=agg,
            progression=progression_for(slot, agg.category, progression),
        )
        for agg in result.categories
    )
    with_history = sum(1 for c in category_reports if c.progression)
    logger.info(
        "Assembled %s report: %d categories (%d with progression)",
        slot,
        len(category_reports),
        with_history,
    )
    return MarketReport(
        slot=slot,
        generated_at=generated_at,
        test_mode=test_mode,
        indices=result.indices,
        categories=category_reports,
        summary=result.summary,
        insight_dataset=insight_dataset,
    )
