"""Market Pulse: open, midday and close market summaries with intraday progression."""

__version__ = "0.1.0"
