"""Rich-based terminal output for test-mode runs and CLI listings.

Uses ``rich.console.Console`` for all output. Color scheme:
green = up, red = down, dim = flat.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from decimal import Decimal

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from Market_Pulse.analysis.holidays import MarketHoliday
from Market_Pulse.models.enums import ReportSlot, Trend
from Market_Pulse.models.report import CategoryAggregate, MarketReport
from Market_Pulse.reporting.formatters import format_pct, format_price, or_na

logger = logging.getLogger(__name__)

# Shared console instance for terminal output
console = Console()

# --- Color scheme ---
COLOR_UP: str = "green"
COLOR_DOWN: str = "red"
COLOR_FLAT: str = "dim"
COLOR_HEADER: str = "bold cyan"

_TREND_STYLES: dict[Trend, str] = {
    Trend.UP: COLOR_UP,
    Trend.DOWN: COLOR_DOWN,
    Trend.FLAT: COLOR_FLAT,
}


def _styled_pct(value: Decimal | None) -> str:
    if value is None:
        return format_pct(None)
    style = _TREND_STYLES[Trend.classify(value)]
    return f"[{style}]{format_pct(value)}[/{style}]"


def _quote_table(aggregate: CategoryAggregate, title: str | None) -> Table:
    table = Table(title=title, title_justify="left")
    table.add_column("Ticker", style="bold")
    table.add_column("Price", justify="right")
    table.add_column("Change", justify="right")
    for quote in aggregate.tickers:
        table.add_row(quote.ticker, format_price(quote.price), _styled_pct(quote.percent_change))
    return table


def render_terminal(report: MarketReport, recipients: Sequence[str]) -> None:
    """Print the test-mode summary: addressing, highlights, breadth, tables and insights."""
    s = report.summary

    console.print()
    console.print(
        Panel(
            f"To: {', '.join(recipients) or or_na(None)}\nSubject: {report.subject}",
            title="TEST MODE",
            style=COLOR_HEADER,
        )
    )

    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Best Ticker: {or_na(s.best_ticker)} {_styled_pct(s.best_ticker_pct)}")
    console.print(f"  Worst Ticker: {or_na(s.worst_ticker)} {_styled_pct(s.worst_ticker_pct)}")
    console.print(f"  Best Category: {or_na(s.best_category)} {_styled_pct(s.best_category_pct)}")
    console.print(
        f"  Worst Category: {or_na(s.worst_category)} {_styled_pct(s.worst_category_pct)}"
    )
    console.print(f"  Breadth: {s.advancers} up / {s.decliners} down / {s.unchanged} flat")

    if report.indices is not None:
        console.print()
        console.print(_quote_table(report.indices, "Market Overview"))

    for category in report.categories:
        agg = category.aggregate
        console.print()
        console.print(f"[bold]{agg.category}[/bold] {_styled_pct(agg.average_percent)}")
        for point in category.progression:
            console.print(f"  {point.label}: {_styled_pct(point.average_percent)}")
        console.print(_quote_table(agg, None))

    console.print("\n[bold]AI Insights:[/bold]")
    console.print(report.insights or or_na(None), markup=False)
    console.print()


def render_holidays(year: int, holidays: Sequence[MarketHoliday]) -> None:
    """Print the computed market holiday calendar for *year*."""
    table = Table(title=f"NYSE Holidays {year}", show_lines=False)
    table.add_column("Date", style="bold")
    table.add_column("Weekday")
    table.add_column("Holiday")
    for holiday in holidays:
        table.add_row(holiday.date.isoformat(), holiday.date.strftime("%A"), holiday.name)
    console.print(table)


def render_progression(
    day_label: str,
    progression: Mapping[tuple[str, ReportSlot], Decimal],
) -> None:
    """Print a day's stored category averages, one row per category."""
    if not progression:
        console.print(f"[dim]No progression recorded for {day_label}[/dim]")
        return

    table = Table(title=f"Progression {day_label}")
    table.add_column("Category", style="bold")
    for slot in ReportSlot:
        table.add_column(slot.label, justify="right")

    categories = list(dict.fromkeys(category for category, _ in progression))
    for category in categories:
        table.add_row(
            category,
            *(_styled_pct(progression.get((category, slot))) for slot in ReportSlot),
        )
    console.print(table)
