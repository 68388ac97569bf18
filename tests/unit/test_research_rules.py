"""
Unit tests for research ticker validation, the job state machine and the
outbound collaborators
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock
from core.exceptions import InvalidArgumentError
from models.base import ResearchJobStatus
from models.research import ResearchJob
from services.research_jobs import (
    normalize_ticker, is_transition_allowed, PageCacheInvalidator, ResearchDispatcher
)

PENDING = ResearchJobStatus.PENDING
PROCESSING = ResearchJobStatus.PROCESSING
COMPLETE = ResearchJobStatus.COMPLETE
FAILED = ResearchJobStatus.FAILED


def client_factory_for(response=None, error=None):
    client = AsyncMock()
    if error is not None:
        client.post.side_effect = error
    else:
        client.post.return_value = response
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = client
    return factory, client


class TestNormalizeTicker:

    @pytest.mark.parametrize("raw,expected", [
        ("aapl", "AAPL"),
        ("  msft ", "MSFT"),
        ("0700.hk", "0700.HK"),
        ("BRK.B", "BRK.B"),
    ])
    def test_valid(self, raw, expected):
        assert normalize_ticker(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", 42])
    def test_missing(self, raw):
        with pytest.raises(InvalidArgumentError, match="Ticker is required"):
            normalize_ticker(raw)

    @pytest.mark.parametrize("raw", ["toolongticker", "AA PL", "AAPL$", "   "])
    def test_bad_format(self, raw):
        with pytest.raises(InvalidArgumentError, match="Invalid ticker format"):
            normalize_ticker(raw)


class TestTransitions:

    @pytest.mark.parametrize("current,new", [
        (PENDING, PROCESSING),
        (PENDING, FAILED),
        (PROCESSING, COMPLETE),
        (PROCESSING, FAILED),
        (PENDING, PENDING),
        (PROCESSING, PROCESSING),
    ])
    def test_allowed(self, current, new):
        assert is_transition_allowed(current, new) is True

    @pytest.mark.parametrize("current,new", [
        (COMPLETE, PENDING),
        (COMPLETE, PROCESSING),
        (COMPLETE, COMPLETE),
        (FAILED, PROCESSING),
        (FAILED, FAILED),
        (PROCESSING, PENDING),
        (PENDING, COMPLETE),
    ])
    def test_rejected(self, current, new):
        assert is_transition_allowed(current, new) is False


class TestPageCacheInvalidator:

    @pytest.mark.asyncio
    async def test_noop_without_url(self):
        factory = MagicMock()
        invalidator = PageCacheInvalidator(url="", client_factory=factory)

        assert await invalidator.invalidate("/stocks/research") is False
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_posts_path(self):
        request = httpx.Request("POST", "https://site.example.com/api/revalidate")
        factory, client = client_factory_for(httpx.Response(200, request=request))
        invalidator = PageCacheInvalidator(url="https://site.example.com/api/revalidate", client_factory=factory)

        assert await invalidator.invalidate("/stocks/research") is True
        client.post.assert_awaited_once_with(
            "https://site.example.com/api/revalidate", json={"path": "/stocks/research"}
        )

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self):
        factory, _ = client_factory_for(error=httpx.ConnectTimeout("timed out"))
        invalidator = PageCacheInvalidator(url="https://site.example.com/api/revalidate", client_factory=factory)

        assert await invalidator.invalidate("/stocks/research") is False


class TestResearchDispatcher:

    def _job(self):
        return ResearchJob(id="research-AAPL-1700000000000", ticker="AAPL", status=PENDING, progress=0)

    @pytest.mark.asyncio
    async def test_skips_without_token(self):
        factory = MagicMock()
        dispatcher = ResearchDispatcher(gateway_url="https://gw.example.com", token="", client_factory=factory)

        assert await dispatcher.dispatch(self._job()) is False
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_spawns_agent(self):
        request = httpx.Request("POST", "https://gw.example.com/tools/invoke")
        factory, client = client_factory_for(httpx.Response(200, json={"ok": True}, request=request))
        dispatcher = ResearchDispatcher(gateway_url="https://gw.example.com", token="gw-token", client_factory=factory)

        assert await dispatcher.dispatch(self._job()) is True

        args, kwargs = client.post.call_args
        assert args[0] == "https://gw.example.com/tools/invoke"
        assert kwargs["headers"] == {"Authorization": "Bearer gw-token"}
        assert kwargs["json"]["args"]["label"] == "research-aapl"
        assert "research-AAPL-1700000000000" in kwargs["json"]["args"]["task"]

    @pytest.mark.asyncio
    async def test_gateway_error_leaves_job_for_polling(self):
        request = httpx.Request("POST", "https://gw.example.com/tools/invoke")
        factory, _ = client_factory_for(httpx.Response(500, request=request))
        dispatcher = ResearchDispatcher(gateway_url="https://gw.example.com", token="gw-token", client_factory=factory)

        assert await dispatcher.dispatch(self._job()) is False
