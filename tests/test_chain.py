"""Tests for the fallback chain combinator."""

from __future__ import annotations

import pytest

from handyman_agent.core.chain import Strategy, first_success


def _returning(value, calls, name):
    async def run():
        calls.append(name)
        return value
    return run


class TestFirstSuccess:
    @pytest.mark.asyncio
    async def test_stops_at_first_truthy_value(self):
        calls = []
        result = await first_success([
            Strategy("a", _returning(None, calls, "a")),
            Strategy("b", _returning([], calls, "b")),
            Strategy("c", _returning(["hit"], calls, "c")),
            Strategy("d", _returning(["late"], calls, "d")),
        ])
        assert result.name == "c"
        assert result.value == ["hit"]
        assert result.attempts == 3
        assert calls == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_exception_counts_as_miss(self):
        async def boom():
            raise RuntimeError("network down")

        calls = []
        result = await first_success([
            Strategy("boom", boom),
            Strategy("ok", _returning("value", calls, "ok")),
        ])
        assert result.name == "ok"

    @pytest.mark.asyncio
    async def test_all_miss_returns_none(self):
        calls = []
        assert await first_success([
            Strategy("a", _returning(None, calls, "a")),
        ]) is None
        assert await first_success([]) is None

    @pytest.mark.asyncio
    async def test_delays_only_before_attempted_strategies(self):
        sleeps = []

        async def sleep(seconds):
            sleeps.append(seconds)

        calls = []
        await first_success(
            [
                Strategy("a", _returning(None, calls, "a")),
                Strategy("b", _returning("x", calls, "b"), delay=0.5),
                Strategy("c", _returning("y", calls, "c"), delay=0.5),
            ],
            sleep=sleep,
        )
        assert sleeps == [0.5]

    @pytest.mark.asyncio
    async def test_custom_accept(self):
        calls = []
        result = await first_success(
            [
                Strategy("zero", _returning(0, calls, "zero")),
                Strategy("one", _returning(1, calls, "one")),
            ],
            accept=lambda v: v is not None,
        )
        assert result.name == "zero"
