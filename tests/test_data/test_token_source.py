"""Tests for the barcode token source."""

from __future__ import annotations

import httpx
import pytest

from handyman_agent.data.token_source import TokenSource

URL = "https://tokens.example.com/barcode.json"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class Endpoint:
    """MockTransport handler that serves a queue of responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request):
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def _source(endpoint, clock, ttl=30.0):
    client = httpx.AsyncClient(transport=httpx.MockTransport(endpoint))
    return TokenSource(URL, ttl=ttl, client=client, clock=clock)


def ok(barcode):
    return httpx.Response(200, json={"barcode": barcode})


class TestCurrent:
    @pytest.mark.asyncio
    async def test_fetches_and_caches(self):
        clock = FakeClock()
        endpoint = Endpoint(ok("123"))
        source = _source(endpoint, clock)

        assert await source.current() == "123"
        clock.now = 10
        assert await source.current() == "123"
        assert len(endpoint.requests) == 1
        assert endpoint.requests[0].headers["Cache-Control"] == "no-cache"
        await source.aclose()

    @pytest.mark.asyncio
    async def test_refetches_after_ttl(self):
        clock = FakeClock()
        endpoint = Endpoint(ok("123"), ok("456"))
        source = _source(endpoint, clock)

        await source.current()
        clock.now = 31
        assert await source.current() == "456"
        assert len(endpoint.requests) == 2

    @pytest.mark.asyncio
    async def test_stale_value_on_error(self):
        clock = FakeClock()
        endpoint = Endpoint(ok("123"), httpx.Response(503))
        source = _source(endpoint, clock, ttl=5)

        assert await source.current() == "123"
        clock.now = 5
        assert await source.current() == "123"
        assert source.is_stale

    @pytest.mark.asyncio
    async def test_stale_value_on_network_error(self):
        clock = FakeClock()
        endpoint = Endpoint(ok("123"), httpx.ConnectError("down"))
        source = _source(endpoint, clock, ttl=5)

        await source.current()
        clock.now = 6
        assert await source.current() == "123"

    @pytest.mark.asyncio
    async def test_none_before_first_success(self):
        source = _source(Endpoint(httpx.Response(500)), FakeClock())
        assert await source.current() is None

    @pytest.mark.asyncio
    async def test_missing_barcode_key_keeps_cache(self):
        clock = FakeClock()
        endpoint = Endpoint(ok("123"), httpx.Response(200, json={"other": 1}))
        source = _source(endpoint, clock)

        await source.current()
        clock.now = 40
        assert await source.current() == "123"

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        source = _source(Endpoint(httpx.Response(200, text="not json")), FakeClock())
        assert await source.current() is None

    @pytest.mark.asyncio
    async def test_no_url(self):
        assert await TokenSource(None).current() is None

    def test_age(self):
        source = TokenSource(URL)
        assert source.age is None
        assert source.is_stale


class TestWaitForChange:
    @pytest.mark.asyncio
    async def test_returns_new_barcode(self):
        clock = FakeClock()
        endpoint = Endpoint(ok("111"), ok("111"), ok("222"))
        source = _source(endpoint, clock)
        sleeps = []

        async def sleep(seconds):
            sleeps.append(seconds)

        assert await source.wait_for_change("111", interval=2.0, sleep=sleep) == "222"
        assert sleeps == [2.0, 2.0]
        assert len(endpoint.requests) == 3

    @pytest.mark.asyncio
    async def test_gives_up(self):
        source = _source(Endpoint(ok("111")), FakeClock())

        async def sleep(seconds):
            pass

        assert await source.wait_for_change("111", attempts=3, sleep=sleep) is None

    @pytest.mark.asyncio
    async def test_clear_cache(self):
        source = _source(Endpoint(ok("111")), FakeClock())
        await source.current()
        source.clear_cache()
        assert source.cached is None
