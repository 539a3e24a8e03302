"""Persistence layer for Market Pulse.

Re-exports the main public API: Database for connection management,
ProgressionStore for the per-day progression log.
"""

from Market_Pulse.data.database import Database
from Market_Pulse.data.progression import ProgressionStore

__all__ = ["Database", "ProgressionStore"]
