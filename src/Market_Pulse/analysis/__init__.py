"""Calendar, aggregation and report-assembly engine.

Re-exports all public functions so consumers can import directly:
    from Market_Pulse.analysis import aggregate, is_market_holiday
"""

from Market_Pulse.analysis.aggregation import aggregate, aggregate_category, breadth_percentages
from Market_Pulse.analysis.holidays import (
    UNKNOWN_HOLIDAY,
    MarketHoliday,
    easter_sunday,
    holiday_name,
    is_market_holiday,
    market_holidays,
)
from Market_Pulse.analysis.progression import (
    assemble_report,
    build_insight_dataset,
    progression_for,
)

__all__ = [
    # Aggregation
    "aggregate",
    "aggregate_category",
    "breadth_percentages",
    # Holidays
    "UNKNOWN_HOLIDAY",
    "MarketHoliday",
    "easter_sunday",
    "holiday_name",
    "is_market_holiday",
    "market_holidays",
    # Progression
    "assemble_report",
    "build_insight_dataset",
    "progression_for",
]
