"""StrEnum types for the market report domain.

Values are lowercase strings.  Use enum members in business logic, never raw
strings.
"""

from decimal import Decimal
from enum import StrEnum

# Moves inside +/- this band count as flat
FLAT_THRESHOLD: Decimal = Decimal("0.05")


class ReportSlot(StrEnum):
    """One of the three scheduled reports in a trading day, in chronological order."""

    OPEN = "open"
    MIDDAY = "midday"
    CLOSE = "close"

    @property
    def label(self) -> str:
        """Display label used in progression lines and subjects."""
        return _SLOT_LABELS[self]

    @property
    def subject_label(self) -> str:
        """Label used in the email subject line."""
        return _SLOT_SUBJECT_LABELS[self]


_SLOT_LABELS: dict[ReportSlot, str] = {
    ReportSlot.OPEN: "Open",
    ReportSlot.MIDDAY: "Midday",
    ReportSlot.CLOSE: "Close",
}

_SLOT_SUBJECT_LABELS: dict[ReportSlot, str] = {
    ReportSlot.OPEN: "Open",
    ReportSlot.MIDDAY: "Mid-day",
    ReportSlot.CLOSE: "Close",
}


class Trend(StrEnum):
    """Direction of a percent change after applying the flat band."""

    UP = "up"
    DOWN = "down"
    FLAT = "flat"

    @classmethod
    def classify(cls, percent: Decimal) -> "Trend":
        """Classify *percent*: up above +0.05, down below -0.05, else flat."""
        if percent > FLAT_THRESHOLD:
            return cls.UP
        if percent < -FLAT_THRESHOLD:
            return cls.DOWN
        return cls.FLAT


class RunState(StrEnum):
    """States of a single report run attempt."""

    GATING = "gating"
    FETCHING = "fetching"
    AGGREGATING = "aggregating"
    PERSISTING = "persisting"
    ASSEMBLING = "assembling"
    DELIVERING = "delivering"
    DONE = "done"
    FAILED = "failed"


class RunOutcome(StrEnum):
    """Terminal result reported back to the scheduler."""

    DELIVERED = "delivered"
    PRINTED = "printed"
    HOLIDAY_SKIPPED = "holiday_skipped"
    FAILED = "failed"

    @property
    def is_success(self) -> bool:
        """Everything except FAILED exits zero."""
        return self is not RunOutcome.FAILED
