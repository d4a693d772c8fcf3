"""Ordered fallback chains with early exit on the first usable result."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _truthy(value: Any) -> bool:
    return bool(value)


@dataclass(frozen=True)
class Strategy(Generic[T]):
    name: str
    run: Callable[[], Awaitable[Optional[T]]]
    delay: float = 0.0  # seconds to wait before this attempt


@dataclass(frozen=True)
class ChainResult(Generic[T]):
    name: str
    value: T
    attempts: int


async def first_success(
    strategies: Sequence[Strategy[T]],
    accept: Callable[[Any], bool] = _truthy,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Optional[ChainResult[T]]:
    """Run strategies in order and return the first accepted value.

    A strategy that raises counts as a miss. Returns None when every
    strategy misses.
    """
    for attempt, strategy in enumerate(strategies, 1):
        if strategy.delay > 0:
            await sleep(strategy.delay)
        try:
            value = await strategy.run()
        except Exception as e:
            logger.warning("Strategy %s failed: %s", strategy.name, e)
            continue
        if accept(value):
            logger.info("Strategy %s succeeded", strategy.name)
            return ChainResult(name=strategy.name, value=value, attempts=attempt)
        logger.debug("Strategy %s returned nothing", strategy.name)
    return None
