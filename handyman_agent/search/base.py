"""Base class for search providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import urlparse

import httpx

from handyman_agent.core.models import SearchResult

# Links from these hosts are image CDNs, never product pages or manuals
NOISE_DOMAINS = ("https://images.thdstatic.com",)


def is_noise(url: str) -> bool:
    return any(domain in url for domain in NOISE_DOMAINS)


def tag_document(result: SearchResult) -> SearchResult:
    if ".pdf" in result.url.lower():
        result.file_format = "PDF"
        result.mime = "application/pdf"
    return result


def display_host(url: str) -> str:
    return urlparse(url).netloc


class SearchProvider(ABC):
    """Resolves a query to relevance-ranked results.

    ``search`` returns ``None`` when the provider is unconfigured or the
    call failed, and an empty list when it answered with no hits.
    """

    name: str = "search"
    primary: bool = True

    def __init__(
        self,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout
        self._client = client

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when the provider has what it needs to make calls."""

    @abstractmethod
    async def search(
        self, query: str, num_results: int = 5
    ) -> Optional[list[SearchResult]]:
        """Run a query and return ranked results."""

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _filter(self, results: list[SearchResult]) -> list[SearchResult]:
        if not self.primary:
            return results
        return [r for r in results if not is_noise(r.url)]

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
