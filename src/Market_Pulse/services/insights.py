"""AI market commentary via the Anthropic Messages API.

``InsightService.generate`` never raises: a missing API key, a timeout, an
HTTP error or an empty completion all degrade to a short placeholder string
that is rendered in place of the commentary.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Final

import httpx

from Market_Pulse.models.enums import ReportSlot
from Market_Pulse.utils.exceptions import InsightUnavailableError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ANTHROPIC_MESSAGES_URL: Final[str] = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION: Final[str] = "2023-06-01"
MAX_TOKENS: Final[int] = 500
DEFAULT_TIMEOUT: Final[float] = 30.0

UNAVAILABLE_PREFIX: Final[str] = "AI insights unavailable"
NO_KEY_REASON: Final[str] = "no API key configured"
REQUEST_FAILED_REASON: Final[str] = "API request failed"

TIME_CONTEXT: Final[dict[ReportSlot, str]] = {
    ReportSlot.OPEN: (
        "This is the MARKET OPEN report. Focus on overnight developments and what to watch today."
    ),
    ReportSlot.MIDDAY: (
        "This is the MIDDAY report. Focus on morning momentum and sector rotation."
    ),
    ReportSlot.CLOSE: (
        "This is the MARKET CLOSE report. Summarize the day's action and key takeaways."
    ),
}

PROMPT_TEMPLATE: Final[str] = """You are a concise market analyst. Analyze this data and provide insights.

{time_context}

DATA:
{dataset}

Provide analysis (150-200 words) covering:
1. Overall sentiment
2. Notable movers
3. Sector observations
4. One key insight

Be direct. Use **bold** for emphasis."""


def placeholder(reason: str | None = None) -> str:
    """Text rendered instead of commentary, e.g. ``AI insights unavailable (no API key configured)``."""
    return f"{UNAVAILABLE_PREFIX} ({reason})" if reason else UNAVAILABLE_PREFIX


def build_prompt(dataset: str, slot: ReportSlot) -> str:
    """Render the analyst prompt for *slot*."""
    return PROMPT_TEMPLATE.format(time_context=TIME_CONTEXT[slot], dataset=dataset)


class InsightService:
    """Generates a short market commentary from the run's plain-text dataset.

    Parameters
    ----------
    api_key:
        Anthropic API key.  Empty means commentary is unavailable, which is
        a normal configuration rather than an error.
    model:
        Model name sent with each request.
    timeout:
        Wall-clock bound for the whole call, in seconds.
    client:
        Optional pre-built ``httpx.AsyncClient`` (used by tests).
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def generate(self, dataset: str, slot: ReportSlot) -> str:
        """Return commentary for *dataset*, or a placeholder when unavailable."""
        try:
            text = await asyncio.wait_for(
                self._request(build_prompt(dataset, slot)),
                timeout=self._timeout,
            )
        except InsightUnavailableError as exc:
            logger.warning("AI insights unavailable: %s", exc.reason)
            return placeholder(exc.reason)
        except TimeoutError:
            logger.warning("AI insights timed out after %.0fs", self._timeout)
            return placeholder(REQUEST_FAILED_REASON)
        logger.info("Generated AI insights (%d chars)", len(text))
        return text

    async def _request(self, prompt: str) -> str:
        if not self.configured:
            raise InsightUnavailableError(NO_KEY_REASON)

        payload: dict[str, Any] = {
            "model": self._model,
            "max_tokens": MAX_TOKENS,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

        try:
            if self._client is not None:
                response = await self._client.post(
                    ANTHROPIC_MESSAGES_URL, json=payload, headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(
                        ANTHROPIC_MESSAGES_URL, json=payload, headers=headers
                    )
            response.raise_for_status()
            data: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("Anthropic API returned HTTP %s", exc.response.status_code)
            raise InsightUnavailableError(REQUEST_FAILED_REASON) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Anthropic API request failed: %s", exc)
            raise InsightUnavailableError(REQUEST_FAILED_REASON) from exc

        return _extract_text(data)


def _extract_text(data: dict[str, Any]) -> str:
    """Pull the first text block out of a Messages API response."""
    content = data.get("content")
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict) and block.get("type", "text") == "text":
                text = str(block.get("text") or "").strip()
                if text:
                    return text
    raise InsightUnavailableError("")
