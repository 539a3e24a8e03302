"""CLI entry point for Market Pulse: scheduled open/midday/close market reports.

Provides the ``market-pulse`` command.  ``run`` is what cron invokes once per
slot; ``holidays`` and ``progression`` are inspection helpers.

This is the ONLY module besides ``reporting.terminal`` that writes to the
console.  All other modules use ``logging``.  Async internals are bridged to
typer's synchronous interface via ``asyncio.run()``.
"""

from __future__ import annotations

import asyncio
import datetime
from enum import StrEnum
from typing import Annotated

import typer
from rich.console import Console

from Market_Pulse.analysis.holidays import market_holidays
from Market_Pulse.config import Settings
from Market_Pulse.data.progression import ProgressionStore
from Market_Pulse.logging_config import configure_logging
from Market_Pulse.models.enums import ReportSlot, RunOutcome
from Market_Pulse.pipeline.orchestrator import ReportRunner
from Market_Pulse.reporting.terminal import render_holidays, render_progression
from Market_Pulse.utils.exceptions import ConfigError

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(name="market-pulse", help="Scheduled stock market summary reports")

# Rich console for formatted output
console = Console()

LOG_FILE_TIMESTAMP: str = "%Y-%m-%d_%H%M%S"


class SlotArgument(StrEnum):
    """Positional ``run`` argument: a report slot, or ``test`` for a dry run."""

    OPEN = "open"
    MIDDAY = "midday"
    CLOSE = "close"
    TEST = "test"


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=2) from exc


# ---------------------------------------------------------------------------
# run command
# ---------------------------------------------------------------------------


@app.command()
def run(
    slot: Annotated[
        SlotArgument, typer.Argument(help="Report slot: open, midday, close, or test")
    ] = SlotArgument.CLOSE,
    report_as: Annotated[
        ReportSlot, typer.Option("--as", help="Slot a test run reports as")
    ] = ReportSlot.CLOSE,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Suppress info logging")] = False,
) -> None:
    """Fetch, aggregate and deliver one report.

    ``test`` skips the holiday gate, leaves the day's progression untouched
    and prints the summary instead of emailing it.  A test run never records
    averages, so it does not appear as a close entry in later reports.
    """
    settings = _load_settings()
    test_mode = slot is SlotArgument.TEST
    report_slot = report_as if test_mode else ReportSlot(slot.value)

    log_file = None
    if not test_mode:
        stamp = datetime.datetime.now().strftime(LOG_FILE_TIMESTAMP)
        log_file = settings.log_dir / f"run_{stamp}.log"
    configure_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    runner = ReportRunner.from_settings(report_slot, settings, test_mode=test_mode)
    outcome = asyncio.run(runner.run())

    if outcome is RunOutcome.FAILED:
        console.print(f"[red]{report_slot.label} report failed[/red]")
        raise typer.Exit(code=1)
    if outcome is RunOutcome.HOLIDAY_SKIPPED:
        console.print("[yellow]Market holiday, no report sent[/yellow]")


# ---------------------------------------------------------------------------
# Inspection commands
# ---------------------------------------------------------------------------


@app.command()
def holidays(
    year: Annotated[int | None, typer.Option(help="Calendar year (default: current)")] = None,
) -> None:
    """List the computed NYSE market holidays for a year."""
    target = year if year is not None else datetime.date.today().year
    render_holidays(target, market_holidays(target))


@app.command()
def progression(
    day: Annotated[
        str | None, typer.Option(help="Day to show as YYYY-MM-DD (default: today)")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Show the category averages recorded for a day."""
    configure_logging(verbose=verbose, quiet=not verbose)
    settings = _load_settings()

    if day is None:
        target = datetime.date.today()
    else:
        try:
            target = datetime.date.fromisoformat(day)
        except ValueError as exc:
            console.print(f"[red]Invalid date:[/red] {day}")
            raise typer.Exit(code=2) from exc

    store = ProgressionStore(settings.data_dir)
    entries = asyncio.run(store.load_today(target))
    render_progression(target.isoformat(), entries)
