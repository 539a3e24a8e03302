"""Report models: aggregation output and the assembled report handed to renderers."""

import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, computed_field, field_serializer

from Market_Pulse.models.enums import ReportSlot, Trend
from Market_Pulse.models.market_data import Quote


class CategoryAggregate(BaseModel):
    """Per-category statistics over the tickers fetched this run.

    ``tickers`` is sorted by percent change, highest first.
    ``average_percent`` is the exact mean over Present quotes only.
    """

    model_config = ConfigDict(frozen=True)

    category: str
    tickers: tuple[Quote, ...]
    average_percent: Decimal
    member_count: int

    @field_serializer("average_percent")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal fields as strings to preserve precision."""
        return str(value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def trend(self) -> Trend:
        return Trend.classify(self.average_percent)


class RunSummary(BaseModel):
    """Whole-run highlights and market breadth.

    Best/worst fields are ``None`` when no quote was fetched at all.
    """

    model_config = ConfigDict(frozen=True)

    best_ticker: str | None = None
    best_ticker_pct: Decimal | None = None
    worst_ticker: str | None = None
    worst_ticker_pct: Decimal | None = None
    best_category: str | None = None
    best_category_pct: Decimal | None = None
    worst_category: str | None = None
    worst_category_pct: Decimal | None = None
    advancers: int = 0
    decliners: int = 0
    unchanged: int = 0
    breadth_up_pct: int = 0
    breadth_down_pct: int = 0
    breadth_flat_pct: int = 0

    @field_serializer(
        "best_ticker_pct",
        "worst_ticker_pct",
        "best_category_pct",
        "worst_category_pct",
    )
    def serialize_decimal(self, value: Decimal | None) -> str | None:
        """Serialize Decimal fields as strings to preserve precision."""
        return None if value is None else str(value)

    @property
    def total(self) -> int:
        return self.advancers + self.decliners + self.unchanged


class AggregationResult(BaseModel):
    """Everything one aggregation pass produces."""

    model_config = ConfigDict(frozen=True)

    indices: CategoryAggregate | None
    categories: tuple[CategoryAggregate, ...]
    summary: RunSummary


class ProgressionPoint(BaseModel):
    """A category's average from an earlier slot of the same day."""

    model_config = ConfigDict(frozen=True)

    slot: ReportSlot
    average_percent: Decimal

    @field_serializer("average_percent")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal fields as strings to preserve precision."""
        return str(value)

    @property
    def label(self) -> str:
        return self.slot.label


class CategoryReport(BaseModel):
    """One categorized table: current aggregate plus its earlier-slot values."""

    model_config = ConfigDict(frozen=True)

    aggregate: CategoryAggregate
    progression: tuple[ProgressionPoint, ...] = ()


class MarketReport(BaseModel):
    """Structured report model consumed by the HTML and terminal renderers."""

    model_config = ConfigDict(frozen=True)

    slot: ReportSlot
    generated_at: datetime.datetime
    test_mode: bool = False
    indices: CategoryAggregate | None
    categories: tuple[CategoryReport, ...]
    summary: RunSummary
    insight_dataset: str
    insights: str = ""

    @property
    def subject(self) -> str:
        """Email subject, e.g. ``[Stocks]: Tuesday Mid-day``."""
        return f"[Stocks]: {self.generated_at.strftime('%A')} {self.slot.subject_label}"

    def with_insights(self, text: str) -> "MarketReport":
        """Return a copy carrying the generated commentary."""
        return self.model_copy(update={"insights": text})
