"""Reporting module: HTML email rendering and rich terminal output.

Re-exports all public functions so consumers can import directly:
    from Market_Pulse.reporting import render_html, render_terminal
"""

from Market_Pulse.reporting.formatters import (
    format_pct,
    format_price,
    markdown_bold_to_html,
    trend_color,
)
from Market_Pulse.reporting.html import render_html
from Market_Pulse.reporting.terminal import (
    render_holidays,
    render_progression,
    render_terminal,
)

__all__ = [
    # Formatters
    "format_pct",
    "format_price",
    "markdown_bold_to_html",
    "trend_color",
    # HTML
    "render_html",
    # Terminal
    "render_holidays",
    "render_progression",
    "render_terminal",
]
