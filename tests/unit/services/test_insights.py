"""Tests for InsightService: request shape and graceful degradation.

The Anthropic API is never called; requests go through ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from Market_Pulse.models import ReportSlot
from Market_Pulse.services.insights import (
    ANTHROPIC_MESSAGES_URL,
    ANTHROPIC_VERSION,
    MAX_TOKENS,
    InsightService,
    build_prompt,
    placeholder,
)

MODEL = "claude-sonnet-4-20250514"


def _client(handler: httpx.MockTransport) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=handler)


class TestBuildPrompt:
    """Tests for the analyst prompt."""

    def test_includes_dataset_and_slot_context(self) -> None:
        prompt = build_prompt("TECH:AAPL: $150 (1.35%)", ReportSlot.OPEN)
        assert "TECH:AAPL: $150 (1.35%)" in prompt
        assert "MARKET OPEN" in prompt
        assert "150-200 words" in prompt

    def test_close_context(self) -> None:
        assert "MARKET CLOSE" in build_prompt("", ReportSlot.CLOSE)

    def test_midday_context(self) -> None:
        assert "sector rotation" in build_prompt("", ReportSlot.MIDDAY)


class TestPlaceholder:
    """Tests for placeholder()."""

    def test_with_reason(self) -> None:
        assert placeholder("no API key configured") == (
            "AI insights unavailable (no API key configured)"
        )

    def test_without_reason(self) -> None:
        assert placeholder() == "AI insights unavailable"


class TestGenerate:
    """Tests for InsightService.generate()."""

    @pytest.mark.asyncio()
    async def test_missing_key_is_unavailable_without_request(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        service = InsightService("", MODEL, client=_client(httpx.MockTransport(handler)))
        text = await service.generate("data", ReportSlot.OPEN)
        assert text == "AI insights unavailable (no API key configured)"
        assert not service.configured

    @pytest.mark.asyncio()
    async def test_successful_request(self) -> None:
        captured: dict[str, object] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["headers"] = request.headers
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"content": [{"type": "text", "text": "**Risk-on** tape."}]}
            )

        service = InsightService("sk-test", MODEL, client=_client(httpx.MockTransport(handler)))
        text = await service.generate("TECH:AAPL: $150 (1.35%)", ReportSlot.CLOSE)

        assert text == "**Risk-on** tape."
        assert captured["url"] == ANTHROPIC_MESSAGES_URL
        headers = captured["headers"]
        assert isinstance(headers, httpx.Headers)
        assert headers["x-api-key"] == "sk-test"
        assert headers["anthropic-version"] == ANTHROPIC_VERSION
        body = captured["body"]
        assert isinstance(body, dict)
        assert body["model"] == MODEL
        assert body["max_tokens"] == MAX_TOKENS
        assert "MARKET CLOSE" in body["messages"][0]["content"]

    @pytest.mark.asyncio()
    async def test_http_error_degrades(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(529, json={"error": {"type": "overloaded_error"}})

        service = InsightService("sk-test", MODEL, client=_client(httpx.MockTransport(handler)))
        text = await service.generate("data", ReportSlot.OPEN)
        assert text == "AI insights unavailable (API request failed)"

    @pytest.mark.asyncio()
    async def test_transport_error_degrades(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        service = InsightService("sk-test", MODEL, client=_client(httpx.MockTransport(handler)))
        text = await service.generate("data", ReportSlot.OPEN)
        assert text == "AI insights unavailable (API request failed)"

    @pytest.mark.asyncio()
    async def test_empty_content_degrades(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"content": []})

        service = InsightService("sk-test", MODEL, client=_client(httpx.MockTransport(handler)))
        text = await service.generate("data", ReportSlot.OPEN)
        assert text == "AI insights unavailable"

    @pytest.mark.asyncio()
    async def test_timeout_degrades(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, json={"content": [{"type": "text", "text": "late"}]})

        service = InsightService(
            "sk-test", MODEL, timeout=0.05, client=_client(httpx.MockTransport(handler))
        )
        text = await service.generate("data", ReportSlot.OPEN)
        assert text == "AI insights unavailable (API request failed)"
