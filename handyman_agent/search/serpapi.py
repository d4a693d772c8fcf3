"""SerpAPI (Google results) primary search provider."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from handyman_agent.core.models import SearchResult
from handyman_agent.search.base import SearchProvider, tag_document

logger = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search"


class SerpApiSearch(SearchProvider):
    name = "serpapi"

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(timeout, client)
        self.api_key = api_key

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def search(
        self, query: str, num_results: int = 5
    ) -> Optional[list[SearchResult]]:
        if not self.is_configured:
            logger.warning("SerpAPI key not available")
            return None

        logger.debug("Searching SerpAPI for %r", query)
        try:
            response = await self._get_client().get(
                SERPAPI_URL,
                params={
                    "engine": "google",
                    "api_key": self.api_key,
                    "q": query,
                    "num": num_results,
                },
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("SerpAPI search failed for %r: %s", query, e)
            return None

        results = []
        for item in data.get("organic_results") or []:
            link = item.get("link")
            # Every result carries a URL
            if not link:
                continue
            results.append(tag_document(SearchResult(
                title=item.get("title", ""),
                url=link,
                snippet=item.get("snippet", ""),
                display_link=item.get("displayed_link", ""),
            )))
        return self._filter(results)
