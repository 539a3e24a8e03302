"""Async SQLite access for the per-day progression files.

One ``Database`` wraps one aiosqlite connection.  Every file is opened in
WAL mode with a busy timeout, so two report runs writing the same day wait
on each other instead of failing.  Schema lives in numbered SQL files under
``migrations/`` and is applied on connect.
"""

import datetime
import logging
from collections.abc import Iterable
from pathlib import Path
from types import TracebackType
from typing import Any

import aiosqlite

logger = logging.getLogger(__name__)

MEMORY_PATH: str = ":memory:"
_MIGRATIONS_DIR = Path(__file__).parent / "migrations"

# Milliseconds a writer waits for a competing lock before SQLITE_BUSY
BUSY_TIMEOUT_MS: int = 10_000


def discover_migrations(directory: Path = _MIGRATIONS_DIR) -> list[tuple[int, Path]]:
    """``(version, path)`` for every ``NNN_name.sql`` file, lowest version first."""
    found = [(int(path.name.split("_", 1)[0]), path) for path in directory.glob("*.sql")]
    return sorted(found)


class Database:
    """One SQLite file with connection lifecycle and schema setup.

    Usage::

        async with Database(store.path_for(today)) as db:
            rows = await db.fetch_all("SELECT category FROM progression_log")
    """

    def __init__(self, db_path: str | Path = MEMORY_PATH) -> None:
        self._db_path = str(db_path)
        self._connection: aiosqlite.Connection | None = None

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def connection(self) -> aiosqlite.Connection:
        """Return the active connection or raise if not connected."""
        if self._connection is None:
            msg = "Database is not connected. Call connect() or use 'async with'."
            raise RuntimeError(msg)
        return self._connection

    async def connect(self) -> None:
        """Open the file (creating its directory), set pragmas, apply schema."""
        if self._db_path != MEMORY_PATH:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        for pragma in (f"busy_timeout={BUSY_TIMEOUT_MS}", "journal_mode=WAL"):
            await self._connection.execute(f"PRAGMA {pragma}")
        await self._run_migrations()
        logger.debug("Opened %s", self._db_path)

    async def close(self) -> None:
        if self._connection is None:
            return
        await self._connection.close()
        self._connection = None
        logger.debug("Closed %s", self._db_path)

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def fetch_all(self, sql: str, params: Iterable[Any] = ()) -> list[tuple[Any, ...]]:
        cursor = await self.connection.execute(sql, tuple(params))
        return [tuple(row) for row in await cursor.fetchall()]

    async def insert_each(self, sql: str, rows: Iterable[Iterable[Any]]) -> int:
        """Insert *rows* one statement at a time, committing after each.

        A concurrent reader therefore sees every row either whole or not
        at all.  Returns the number of rows written.
        """
        conn = self.connection
        written = 0
        for row in rows:
            await conn.execute(sql, tuple(row))
            await conn.commit()
            written += 1
        return written

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def _run_migrations(self) -> None:
        """Apply migration files not yet listed in ``schema_version``.

        Safe to run repeatedly.  DDL uses IF NOT EXISTS and the version row
        is INSERT OR IGNORE, so two processes creating the same new day file
        both succeed.
        """
        conn = self.connection
        await conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version "
            "(version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
        await conn.commit()

        applied = {row[0] for row in await self.fetch_all("SELECT version FROM schema_version")}
        pending = [(v, p) for v, p in discover_migrations() if v not in applied]

        for version, path in pending:
            logger.debug("Applying migration %03d (%s)", version, path.name)
            await conn.executescript(path.read_text(encoding="utf-8"))
            await conn.execute(
                "INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, ?)",
                (version, datetime.datetime.now(datetime.UTC).isoformat()),
            )
            await conn.commit()
