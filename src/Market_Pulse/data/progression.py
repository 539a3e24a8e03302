"""Day-scoped, append-only store of category averages per report slot.

Each local calendar day gets its own SQLite file
(``progression_YYYY-MM-DD.db``), so day rollover needs no migration or
cleanup: a new day simply opens a new, empty file.

Semantics:

* ``append`` inserts one row per call and commits it on its own, so an
  overlapping run sees either the whole record or nothing.
* ``load_today`` scans the whole day in insertion order; a later row for the
  same (category, slot) replaces an earlier one (last write wins).
* The store never deduplicates; the orchestrator appends once per run.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Final

from Market_Pulse.data.database import Database
from Market_Pulse.models.enums import ReportSlot
from Market_Pulse.models.report import CategoryAggregate

logger = logging.getLogger(__name__)

FILE_PREFIX: Final[str] = "progression_"
FILE_SUFFIX: Final[str] = ".db"


class ProgressionStore:
    """Per-day progression log backed by one SQLite file per day.

    Usage::

        store = ProgressionStore(Path("~/.market-pulse/data"))
        prior = await store.load_today(today)
        await store.append(today, "TECH", ReportSlot.OPEN, Decimal("0.42"))
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir

    def path_for(self, day: datetime.date) -> Path:
        """File holding *day*'s log."""
        return self._data_dir / f"{FILE_PREFIX}{day.isoformat()}{FILE_SUFFIX}"

    async def load_today(self, day: datetime.date) -> dict[tuple[str, ReportSlot], Decimal]:
        """Latest average per (category, slot) recorded on *day*.

        A day with no file yet yields an empty map without creating one.
        """
        path = self.path_for(day)
        if not path.exists():
            logger.debug("No progression log for %s", day)
            return {}

        progression: dict[tuple[str, ReportSlot], Decimal] = {}
        async with Database(path) as db:
            rows = await db.fetch_all(
                "SELECT category, slot, average_percent FROM progression_log ORDER BY id"
            )

        for category, slot_raw, value_raw in rows:
            try:
                slot = ReportSlot(slot_raw)
                value = Decimal(value_raw)
            except (ValueError, InvalidOperation):
                logger.warning(
                    "Skipping malformed progression row %r/%r/%r", category, slot_raw, value_raw
                )
                continue
            progression[(category, slot)] = value

        logger.info("Loaded %d progression entries for %s", len(progression), day)
        return progression

    async def append(
        self,
        day: datetime.date,
        category: str,
        slot: ReportSlot,
        average_percent: Decimal,
    ) -> None:
        """Append one (category, slot, average) record to *day*'s log."""
        await self.append_many(day, slot, [(category, average_percent)])

    async def append_many(
        self,
        day: datetime.date,
        slot: ReportSlot,
        records: Iterable[tuple[str, Decimal]],
    ) -> int:
        """Append several records for the same slot; each row commits separately.

        Returns:
            Number of rows written.
        """
        rows = list(records)
        if not rows:
            return 0
        recorded_at = datetime.datetime.now(datetime.UTC).isoformat()
        async with Database(self.path_for(day)) as db:
            written = await db.insert_each(
                "INSERT INTO progression_log "
                "(category, slot, average_percent, recorded_at) VALUES (?, ?, ?, ?)",
                (
                    (category, slot.value, str(average_percent), recorded_at)
                    for category, average_percent in rows
                ),
            )
        logger.info("Recorded %d %s averages for %s", written, slot, day)
        return written

    async def record_aggregates(
        self,
        day: datetime.date,
        slot: ReportSlot,
        aggregates: Iterable[CategoryAggregate],
    ) -> int:
        """Append each aggregate's average under *slot*."""
        return await self.append_many(
            day, slot, ((agg.category, agg.average_percent) for agg in aggregates)
        )

    def list_days(self) -> list[datetime.date]:
        """Days that have a log file, oldest first."""
        if not self._data_dir.is_dir():
            return []
        days: list[datetime.date] = []
        for path in self._data_dir.glob(f"{FILE_PREFIX}*{FILE_SUFFIX}"):
            stem = path.name[len(FILE_PREFIX) : -len(FILE_SUFFIX)]
            try:
                days.append(datetime.date.fromisoformat(stem))
            except ValueError:
                continue
        return sorted(days)
