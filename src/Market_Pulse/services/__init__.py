"""External services: quotes, AI commentary and email delivery."""

from Market_Pulse.services.emailer import EmailTransport
from Market_Pulse.services.insights import InsightService
from Market_Pulse.services.market_data import QuoteService
from Market_Pulse.services.rate_limiter import RateLimiter

__all__ = [
    "EmailTransport",
    "InsightService",
    "QuoteService",
    "RateLimiter",
]
