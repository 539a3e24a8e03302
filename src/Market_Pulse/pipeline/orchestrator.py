"""Run orchestrator: one report slot from calendar gate to delivery.

A single attempt walks the states

    GATING -> FETCHING -> AGGREGATING -> PERSISTING -> ASSEMBLING
    -> DELIVERING -> DONE

and any ``RunError`` moves it to FAILED.  ``ReportRunner.run`` wraps
attempts in a bounded retry loop with a fixed delay.  A partial report is
never delivered: delivery is the last step of an attempt.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from Market_Pulse.analysis.aggregation import aggregate
from Market_Pulse.analysis.holidays import holiday_name, is_market_holiday
from Market_Pulse.analysis.progression import assemble_report, build_insight_dataset
from Market_Pulse.config import Settings
from Market_Pulse.data.progression import ProgressionStore
from Market_Pulse.models.enums import ReportSlot, RunOutcome, RunState
from Market_Pulse.models.watchlist import load_watchlist
from Market_Pulse.reporting.html import render_html
from Market_Pulse.reporting.terminal import render_terminal
from Market_Pulse.services.emailer import EmailTransport
from Market_Pulse.services.insights import InsightService
from Market_Pulse.services.market_data import QuoteService
from Market_Pulse.services.rate_limiter import RateLimiter
from Market_Pulse.utils.exceptions import RunError, TotalDataError

logger = logging.getLogger(__name__)


def _local_now() -> datetime.datetime:
    return datetime.datetime.now().astimezone()


class ReportRunner:
    """Produces and delivers one report for *slot*.

    Collaborators are injected so tests can swap in fakes; use
    :meth:`from_settings` to wire the real services.

    Usage::

        runner = ReportRunner.from_settings(ReportSlot.CLOSE, Settings.from_env())
        outcome = await runner.run()
    """

    def __init__(
        self,
        slot: ReportSlot,
        *,
        watchlist_path: Path,
        quote_service: QuoteService,
        store: ProgressionStore,
        insight_service: InsightService,
        transport: EmailTransport,
        test_mode: bool = False,
        max_attempts: int = 3,
        retry_delay: float = 30.0,
        now: Callable[[], datetime.datetime] = _local_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.slot = slot
        self.test_mode = test_mode
        self.state: RunState = RunState.GATING
        self._watchlist_path = watchlist_path
        self._quote_service = quote_service
        self._store = store
        self._insight_service = insight_service
        self._transport = transport
        self._max_attempts = max(1, max_attempts)
        self._retry_delay = retry_delay
        self._now = now
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        slot: ReportSlot,
        settings: Settings,
        *,
        test_mode: bool = False,
    ) -> ReportRunner:
        """Wire the yfinance, Anthropic and SMTP services from *settings*."""
        return cls(
            slot,
            watchlist_path=settings.watchlist_path,
            quote_service=QuoteService(rate_limiter=RateLimiter()),
            store=ProgressionStore(settings.data_dir),
            insight_service=InsightService(settings.anthropic_api_key, settings.anthropic_model),
            transport=EmailTransport(
                recipients=settings.email_to,
                sender=settings.email_from,
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_user,
                password=settings.smtp_password,
            ),
            test_mode=test_mode,
            max_attempts=settings.max_attempts,
            retry_delay=settings.retry_delay,
        )

    # ------------------------------------------------------------------
    # Retry loop
    # ------------------------------------------------------------------

    async def run(self) -> RunOutcome:
        """Run attempts until one succeeds or the budget is spent.

        Test mode makes exactly one attempt.  Never raises for run-level
        failures; the caller maps ``RunOutcome.FAILED`` to a non-zero exit.
        """
        attempts = 1 if self.test_mode else self._max_attempts

        for attempt in range(1, attempts + 1):
            try:
                return await self.run_once()
            except RunError as exc:
                logger.error("Attempt %d failed: %s", attempt, exc)
            except Exception:  # noqa: BLE001
                self.state = RunState.FAILED
                logger.exception("Attempt %d failed with an unexpected error", attempt)

            if attempt < attempts:
                logger.info("Retrying in %.0f seconds...", self._retry_delay)
                await self._sleep(self._retry_delay)

        if not self.test_mode:
            logger.error("All retry attempts failed")
        return RunOutcome.FAILED

    # ------------------------------------------------------------------
    # Single attempt
    # ------------------------------------------------------------------

    async def run_once(self) -> RunOutcome:
        """Execute one attempt through every state.

        Raises:
            TotalDataError: Watchlist unusable or no quote fetched.
            DeliveryError: The transport rejected the report.
        """
        try:
            return await self._attempt()
        except RunError:
            self.state = RunState.FAILED
            raise

    async def _attempt(self) -> RunOutcome:
        now = self._now()
        today = now.date()

        self.state = RunState.GATING
        if not self.test_mode and is_market_holiday(today):
            logger.info("Market closed for %s - skipping report", holiday_name(today))
            self.state = RunState.DONE
            return RunOutcome.HOLIDAY_SKIPPED

        self.state = RunState.FETCHING
        watchlist = load_watchlist(self._watchlist_path)
        logger.info(
            "Starting %s report: %d categories, %d tickers%s",
            self.slot,
            len(watchlist.categories),
            len(watchlist.unique_tickers()),
            " (test mode)" if self.test_mode else "",
        )
        quotes = await self._quote_service.fetch_quotes(watchlist.unique_tickers())
        if not any(quote is not None for quote in quotes.values()):
            raise TotalDataError("No quotes could be fetched for any ticker")

        self.state = RunState.AGGREGATING
        result = aggregate(watchlist, quotes)

        self.state = RunState.PERSISTING
        # Snapshot before appending so this slot never shows as its own history
        progression = await self._store.load_today(today)
        if not self.test_mode:
            await self._store.record_aggregates(today, self.slot, result.categories)

        self.state = RunState.ASSEMBLING
        dataset = build_insight_dataset(watchlist, quotes)
        report = assemble_report(
            self.slot,
            result,
            progression,
            insight_dataset=dataset,
            generated_at=now,
            test_mode=self.test_mode,
        )
        insights = await self._insight_service.generate(dataset, self.slot)
        report = report.with_insights(insights)

        self.state = RunState.DELIVERING
        if self.test_mode:
            render_terminal(report, self._transport.recipients)
            outcome = RunOutcome.PRINTED
        else:
            await self._transport.deliver(report.subject, render_html(report))
            outcome = RunOutcome.DELIVERED

        self.state = RunState.DONE
        logger.info("Report %s complete: %s", self.slot, outcome)
        return outcome
