"""Shared formatting utilities for the HTML and terminal reports.

Percentages are displayed with an explicit sign and two decimals, rounded
half-up.  Colors follow the same flat band as ``Trend.classify``.  All
functions accept ``None`` and render it as ``N/A`` so an empty run never
crashes a renderer.
"""

from __future__ import annotations

import html
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Final

from Market_Pulse.models.enums import Trend

NOT_AVAILABLE: Final[str] = "N/A"
DISPLAY_QUANTUM: Final[Decimal] = Decimal("0.01")

# --- Trend colors (HTML) ---
COLOR_UP: Final[str] = "#22c55e"
COLOR_DOWN: Final[str] = "#ef4444"
COLOR_FLAT: Final[str] = "#6b7280"

TREND_COLORS: Final[dict[Trend, str]] = {
    Trend.UP: COLOR_UP,
    Trend.DOWN: COLOR_DOWN,
    Trend.FLAT: COLOR_FLAT,
}

_BOLD_PATTERN = re.compile(r"\*\*([^*]+)\*\*")


def _to_decimal(value: Decimal | str | float | None) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def format_pct(value: Decimal | str | float | None) -> str:
    """Signed percentage: ``Decimal("1.5")`` -> ``'+1.50%'``, ``-0.145`` -> ``'-0.15%'``."""
    d = _to_decimal(value)
    if d is None:
        return NOT_AVAILABLE
    shown = d.quantize(DISPLAY_QUANTUM, rounding=ROUND_HALF_UP)
    if shown.is_zero():
        # -0.001 quantizes to Decimal("-0.00")
        shown = abs(shown)
    sign = "+" if shown >= 0 else ""
    return f"{sign}{shown}%"


def format_price(value: Decimal | str | float | None) -> str:
    """Dollar price with thousands separators: ``'1234.5'`` -> ``'$1,234.50'``."""
    d = _to_decimal(value)
    if d is None:
        return NOT_AVAILABLE
    return f"${d:,.2f}"


def trend_color(value: Decimal | str | float | None) -> str:
    """HTML color for a percent change; ``None`` is rendered as flat."""
    d = _to_decimal(value)
    if d is None:
        return COLOR_FLAT
    return TREND_COLORS[Trend.classify(d)]


def markdown_bold_to_html(text: str) -> str:
    """Escape *text* for HTML, then turn ``**bold**`` runs into ``<strong>`` and newlines into ``<br>``."""
    escaped = html.escape(text)
    bolded = _BOLD_PATTERN.sub(r"<strong>\1</strong>", escaped)
    return bolded.replace("\n", "<br>\n")


def or_na(value: object) -> str:
    """Plain value or ``N/A`` when missing."""
    return NOT_AVAILABLE if value is None else str(value)
