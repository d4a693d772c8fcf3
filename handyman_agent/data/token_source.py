"""Barcode token source — short-TTL cache over a polled JSON endpoint."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TTL = 30.0
WAIT_ATTEMPTS = 10
WAIT_INTERVAL = 3.0


class TokenSource:
    """Supplies the current barcode.

    A fetch failure returns the last known value, however stale; ``None``
    only comes back when nothing has ever been fetched.
    """

    def __init__(
        self,
        url: Optional[str],
        ttl: float = DEFAULT_TTL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.url = url
        self.ttl = ttl
        self.timeout = timeout
        self._client = client
        self._clock = clock
        self._cached: Optional[str] = None
        self._fetched_at: float = 0.0

    @property
    def cached(self) -> Optional[str]:
        return self._cached

    @property
    def age(self) -> Optional[float]:
        """Seconds since the cached value was fetched."""
        if self._cached is None:
            return None
        return self._clock() - self._fetched_at

    @property
    def is_stale(self) -> bool:
        age = self.age
        return age is None or age >= self.ttl

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def _fetch(self) -> Optional[str]:
        if not self.url:
            logger.debug("No barcode URL configured")
            return None
        try:
            response = await self._get_client().get(
                self.url, headers={"Cache-Control": "no-cache"}
            )
            response.raise_for_status()
            data: Any = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Error fetching barcode: %s", e)
            return None

        barcode = data.get("barcode") if isinstance(data, dict) else None
        if not barcode:
            logger.warning("No barcode found in response")
            return None
        return str(barcode)

    async def current(self) -> Optional[str]:
        if self._cached is not None and not self.is_stale:
            logger.debug("Using cached barcode: %s", self._cached)
            return self._cached

        barcode = await self._fetch()
        if barcode is not None:
            if barcode != self._cached:
                logger.info("Fetched barcode: %s", barcode)
            self._cached = barcode
            self._fetched_at = self._clock()
            return barcode

        if self._cached is not None:
            logger.info("Using stale cached barcode: %s", self._cached)
        return self._cached

    async def wait_for_change(
        self,
        previous: Optional[str],
        attempts: int = WAIT_ATTEMPTS,
        interval: float = WAIT_INTERVAL,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> Optional[str]:
        """Poll until a barcode different from ``previous`` shows up."""
        for attempt in range(1, attempts + 1):
            logger.debug(
                "Checking for new barcode (attempt %d/%d)", attempt, attempts
            )
            # Bypass the TTL so each poll actually hits the endpoint
            self._fetched_at = self._clock() - self.ttl
            barcode = await self.current()
            if barcode and barcode != previous:
                logger.info("New barcode detected: %s", barcode)
                return barcode
            if attempt < attempts:
                await sleep(interval)
        logger.info("Timed out waiting for a new barcode")
        return None

    def clear_cache(self) -> None:
        self._cached = None
        self._fetched_at = 0.0

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
