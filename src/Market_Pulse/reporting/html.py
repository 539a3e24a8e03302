"""Jinja2 HTML rendering of a ``MarketReport`` for email delivery."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Final

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from Market_Pulse.models.report import MarketReport
from Market_Pulse.reporting.formatters import (
    format_pct,
    format_price,
    markdown_bold_to_html,
    or_na,
    trend_color,
)

logger = logging.getLogger(__name__)

TEMPLATE_NAME: Final[str] = "report.html.j2"
TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%d %H:%M"


@lru_cache(maxsize=1)
def _environment() -> Environment:
    """Build the template environment once and register the report filters."""
    env = Environment(
        loader=PackageLoader("Market_Pulse", "reporting/templates"),
        autoescape=select_autoescape(["html", "j2"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["pct"] = format_pct
    env.filters["price"] = format_price
    env.filters["color"] = trend_color
    env.filters["na"] = or_na
    env.filters["insights"] = markdown_bold_to_html
    return env


def render_html(report: MarketReport) -> str:
    """Render *report* as a self-contained HTML document."""
    template = _environment().get_template(TEMPLATE_NAME)
    body = template.render(
        report=report,
        timestamp=report.generated_at.strftime(TIMESTAMP_FORMAT),
    )
    logger.debug("Rendered %s report HTML (%d bytes)", report.slot, len(body))
    return body
