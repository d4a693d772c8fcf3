"""Tests for the SerpAPI primary search provider."""

from __future__ import annotations

import httpx
import pytest

from handyman_agent.search.serpapi import SERPAPI_URL, SerpApiSearch


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


ORGANIC = {
    "organic_results": [
        {
            "title": "LEGO 10696 Classic",
            "link": "https://www.lego.com/10696",
            "snippet": "Creative box",
            "displayed_link": "www.lego.com",
        },
        {
            "title": "Product image",
            "link": "https://images.thdstatic.com/productImages/abc.jpg",
        },
        {
            "title": "10696 building instructions",
            "link": "https://example.com/10696.pdf",
        },
        {"title": "no link"},
    ]
}


class TestSerpApiSearch:
    @pytest.mark.asyncio
    async def test_maps_results_and_drops_noise(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=ORGANIC)

        search = SerpApiSearch("key", client=_client(handler))
        results = await search.search("0123 LEGO", num_results=5)

        assert seen["url"].startswith(SERPAPI_URL)
        assert seen["params"] == {
            "engine": "google", "api_key": "key", "q": "0123 LEGO", "num": "5",
        }
        assert [r.url for r in results] == [
            "https://www.lego.com/10696",
            "https://example.com/10696.pdf",
        ]
        assert results[0].display_link == "www.lego.com"
        assert results[1].file_format == "PDF"
        assert results[1].mime == "application/pdf"

    @pytest.mark.asyncio
    async def test_no_organic_results_is_empty(self):
        search = SerpApiSearch(
            "key", client=_client(lambda r: httpx.Response(200, json={}))
        )
        assert await search.search("q") == []

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self):
        search = SerpApiSearch(
            "key", client=_client(lambda r: httpx.Response(500, text="boom"))
        )
        assert await search.search("q") is None

    @pytest.mark.asyncio
    async def test_network_error_returns_none(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        search = SerpApiSearch("key", client=_client(handler))
        assert await search.search("q") is None

    @pytest.mark.asyncio
    async def test_without_key_makes_no_call(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=ORGANIC)

        search = SerpApiSearch(None, client=_client(handler))
        assert search.is_configured is False
        assert await search.search("q") is None
        assert calls == []
