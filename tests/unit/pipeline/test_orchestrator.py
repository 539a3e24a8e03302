"""Tests for ReportRunner: gating, persistence, delivery, and retries.

All network collaborators are replaced with AsyncMocks; the progression
store is either a real ProgressionStore in tmp_path or a mock when call
order matters.
"""

from __future__ import annotations

import datetime
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, call, patch

import pytest

from Market_Pulse.data.progression import ProgressionStore
from Market_Pulse.models import Quote, ReportSlot, RunOutcome, RunState
from Market_Pulse.pipeline.orchestrator import ReportRunner
from Market_Pulse.utils.exceptions import DeliveryError, TotalDataError

CLOSE_TIME = datetime.datetime(2025, 3, 11, 16, 5)
CHRISTMAS = datetime.datetime(2025, 12, 25, 9, 35)


def _make_runner(
    watchlist_path: Path,
    quotes: dict[str, Quote | None],
    store: ProgressionStore | MagicMock,
    *,
    slot: ReportSlot = ReportSlot.CLOSE,
    test_mode: bool = False,
    now: datetime.datetime = CLOSE_TIME,
    max_attempts: int = 3,
) -> tuple[ReportRunner, MagicMock, AsyncMock]:
    """Build a runner with mocked services; returns (runner, transport, sleep)."""
    quote_service = AsyncMock()
    quote_service.fetch_quotes.return_value = quotes
    insight_service = AsyncMock()
    insight_service.generate.return_value = "**Energy** led."
    transport = MagicMock()
    transport.recipients = ("desk@example.com",)
    transport.deliver = AsyncMock()
    sleep = AsyncMock()

    runner = ReportRunner(
        slot,
        watchlist_path=watchlist_path,
        quote_service=quote_service,
        store=store,
        insight_service=insight_service,
        transport=transport,
        test_mode=test_mode,
        max_attempts=max_attempts,
        retry_delay=30.0,
        now=lambda: now,
        sleep=sleep,
    )
    return runner, transport, sleep


def _mock_store() -> MagicMock:
    store = MagicMock()
    store.load_today = AsyncMock(return_value={})
    store.record_aggregates = AsyncMock(return_value=2)
    return store


class TestCalendarGate:
    """Holiday gating before any fetch."""

    @pytest.mark.asyncio()
    async def test_holiday_skips_without_fetching(
        self, watchlist_file: Path, full_quotes: dict[str, Quote | None], tmp_path: Path
    ) -> None:
        store = ProgressionStore(tmp_path / "data")
        runner, transport, _ = _make_runner(watchlist_file, full_quotes, store, now=CHRISTMAS)

        outcome = await runner.run()

        assert outcome is RunOutcome.HOLIDAY_SKIPPED
        assert outcome.is_success
        assert runner.state is RunState.DONE
        transport.deliver.assert_not_awaited()
        assert store.list_days() == []

    @pytest.mark.asyncio()
    async def test_test_mode_ignores_holiday(
        self, watchlist_file: Path, full_quotes: dict[str, Quote | None]
    ) -> None:
        runner, _, _ = _make_runner(
            watchlist_file, full_quotes, _mock_store(), test_mode=True, now=CHRISTMAS
        )
        with patch("Market_Pulse.pipeline.orchestrator.render_terminal") as mock_render:
            outcome = await runner.run()

        assert outcome is RunOutcome.PRINTED
        mock_render.assert_called_once()


class TestDeliveredRun:
    """Non-test runs persist, then email."""

    @pytest.mark.asyncio()
    async def test_delivers_html_and_persists(
        self, watchlist_file: Path, full_quotes: dict[str, Quote | None], tmp_path: Path
    ) -> None:
        store = ProgressionStore(tmp_path / "data")
        runner, transport, sleep = _make_runner(watchlist_file, full_quotes, store)

        outcome = await runner.run()

        assert outcome is RunOutcome.DELIVERED
        assert runner.state is RunState.DONE
        sleep.assert_not_awaited()
        transport.deliver.assert_awaited_once()
        subject, html_body = transport.deliver.await_args.args
        assert subject == "[Stocks]: Tuesday Close"
        assert "<strong>Energy</strong> led." in html_body

        stored = await store.load_today(CLOSE_TIME.date())
        assert stored[("ENERGY", ReportSlot.CLOSE)] == Decimal("1.82")
        assert stored[("TECH", ReportSlot.CLOSE)] == Decimal("-0.145")
        assert ("INDICES", ReportSlot.CLOSE) not in stored

    @pytest.mark.asyncio()
    async def test_progression_read_before_append(
        self, watchlist_file: Path, full_quotes: dict[str, Quote | None]
    ) -> None:
        """The current slot's own averages never show up as its history."""
        store = _mock_store()
        manager = MagicMock()
        manager.attach_mock(store.load_today, "load_today")
        manager.attach_mock(store.record_aggregates, "record_aggregates")
        runner, _, _ = _make_runner(watchlist_file, full_quotes, store)

        await runner.run()

        names = [c[0] for c in manager.mock_calls]
        assert names == ["load_today", "record_aggregates"]
        day, slot, aggregates = store.record_aggregates.await_args.args
        assert day == CLOSE_TIME.date()
        assert slot is ReportSlot.CLOSE
        assert [agg.category for agg in aggregates] == ["TECH", "ENERGY"]

    @pytest.mark.asyncio()
    async def test_prior_slots_reach_report(
        self, watchlist_file: Path, full_quotes: dict[str, Quote | None], tmp_path: Path
    ) -> None:
        store = ProgressionStore(tmp_path / "data")
        await store.append(CLOSE_TIME.date(), "TECH", ReportSlot.OPEN, Decimal("0.40"))
        runner, transport, _ = _make_runner(watchlist_file, full_quotes, store)

        await runner.run()

        _, html_body = transport.deliver.await_args.args
        assert "Open:" in html_body
        assert "+0.40%" in html_body


class TestTestMode:
    """Test mode prints, never persists or emails."""

    @pytest.mark.asyncio()
    async def test_prints_without_persisting(
        self, watchlist_file: Path, full_quotes: dict[str, Quote | None]
    ) -> None:
        store = _mock_store()
        runner, transport, _ = _make_runner(
            watchlist_file, full_quotes, store, slot=ReportSlot.MIDDAY, test_mode=True
        )
        with patch("Market_Pulse.pipeline.orchestrator.render_terminal") as mock_render:
            outcome = await runner.run()

        assert outcome is RunOutcome.PRINTED
        store.load_today.assert_awaited_once()
        store.record_aggregates.assert_not_awaited()
        transport.deliver.assert_not_awaited()
        report, recipients = mock_render.call_args.args
        assert report.slot is ReportSlot.MIDDAY
        assert report.test_mode is True
        assert recipients == ("desk@example.com",)

    @pytest.mark.asyncio()
    async def test_single_attempt(self, watchlist_file: Path) -> None:
        runner, _, sleep = _make_runner(
            watchlist_file, {"SPY": None}, _mock_store(), test_mode=True
        )

        outcome = await runner.run()

        assert outcome is RunOutcome.FAILED
        sleep.assert_not_awaited()


class TestRetries:
    """Bounded retry loop with a fixed delay."""

    @pytest.mark.asyncio()
    async def test_all_missing_raises_total_data_error(self, watchlist_file: Path) -> None:
        quotes: dict[str, Quote | None] = dict.fromkeys(
            ["SPY", "QQQ", "AAPL", "MSFT", "XOM", "CVX"]
        )
        store = _mock_store()
        runner, transport, _ = _make_runner(watchlist_file, quotes, store)

        with pytest.raises(TotalDataError):
            await runner.run_once()

        assert runner.state is RunState.FAILED
        store.record_aggregates.assert_not_awaited()
        transport.deliver.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_gives_up_after_max_attempts(self, watchlist_file: Path) -> None:
        runner, transport, sleep = _make_runner(
            watchlist_file, {"SPY": None}, _mock_store(), max_attempts=3
        )

        outcome = await runner.run()

        assert outcome is RunOutcome.FAILED
        assert not outcome.is_success
        assert runner.state is RunState.FAILED
        assert sleep.await_args_list == [call(30.0), call(30.0)]
        transport.deliver.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_delivery_failure_then_success(
        self, watchlist_file: Path, full_quotes: dict[str, Quote | None]
    ) -> None:
        store = _mock_store()
        runner, transport, sleep = _make_runner(watchlist_file, full_quotes, store)
        transport.deliver.side_effect = [DeliveryError("SMTP send failed"), None]

        outcome = await runner.run()

        assert outcome is RunOutcome.DELIVERED
        assert transport.deliver.await_count == 2
        sleep.assert_awaited_once_with(30.0)
        # Each attempt appends its own snapshot
        assert store.record_aggregates.await_count == 2

    @pytest.mark.asyncio()
    async def test_missing_watchlist_is_retried(self, tmp_path: Path) -> None:
        runner, _, sleep = _make_runner(
            tmp_path / "absent.conf", {}, _mock_store(), max_attempts=2
        )

        outcome = await runner.run()

        assert outcome is RunOutcome.FAILED
        sleep.assert_awaited_once()

    @pytest.mark.asyncio()
    async def test_unexpected_error_is_retried(
        self, watchlist_file: Path, full_quotes: dict[str, Quote | None]
    ) -> None:
        store = _mock_store()
        store.load_today.side_effect = [RuntimeError("disk"), {}]
        runner, transport, sleep = _make_runner(watchlist_file, full_quotes, store)

        outcome = await runner.run()

        assert outcome is RunOutcome.DELIVERED
        sleep.assert_awaited_once()
        transport.deliver.assert_awaited_once()
