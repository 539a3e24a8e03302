"""Market data models: per-ticker quote snapshots.

All price fields use Decimal (constructed from strings) with custom
serializers to prevent silent float conversion in JSON roundtrips.
"""

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, computed_field, field_serializer

from Market_Pulse.models.enums import Trend

PERCENT_QUANTUM: Decimal = Decimal("0.01")


def compute_percent_change(price: Decimal, previous_close: Decimal) -> Decimal:
    """Percent change from *previous_close* to *price*, rounded to 2 dp.

    A zero previous close yields ``0`` instead of dividing by zero.
    """
    if previous_close == 0:
        return Decimal("0.00")
    raw = (price - previous_close) / previous_close * 100
    change = raw.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)
    return abs(change) if change.is_zero() else change


class Quote(BaseModel):
    """Delayed quote snapshot for a ticker, taken once per run.

    Frozen because a quote is a point-in-time snapshot.  ``percent_change``
    is computed at fetch time and never re-derived downstream.
    """

    model_config = ConfigDict(frozen=True)

    ticker: str
    price: Decimal
    previous_close: Decimal
    percent_change: Decimal

    @classmethod
    def from_prices(cls, ticker: str, price: Decimal, previous_close: Decimal) -> "Quote":
        """Build a quote, deriving ``percent_change`` from the two prices."""
        return cls(
            ticker=ticker,
            price=price,
            previous_close=previous_close,
            percent_change=compute_percent_change(price, previous_close),
        )

    @field_serializer("price", "previous_close", "percent_change")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal fields as strings to preserve precision."""
        return str(value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def trend(self) -> Trend:
        """Up / down / flat classification of the day's move."""
        return Trend.classify(self.percent_change)
