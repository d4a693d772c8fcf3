"""Exa neural search — the secondary, last-resort provider."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from handyman_agent.core.models import SearchResult
from handyman_agent.search.base import SearchProvider, display_host, tag_document

logger = logging.getLogger(__name__)

EXA_URL = "https://api.exa.ai/search"


class ExaSearch(SearchProvider):
    name = "exa"
    primary = False

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
        self, query: str, num_results: int = 3
    ) -> Optional[list[SearchResult]]:
        if not self.is_configured:
            logger.warning("Exa API key not available")
            return None

        try:
            response = await self._get_client().post(
                EXA_URL,
                json={
                    "query": query,
                    "type": "neural",
                    "useAutoprompt": True,
                    "numResults": num_results,
                    "contents": {"text": True, "highlights": True},
                },
                headers={"x-api-key": self.api_key},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Exa search failed for %r: %s", query, e)
            return None

        results = []
        for item in data.get("results") or []:
            url = item.get("url")
            if not url:
                continue
            highlights = [h for h in item.get("highlights") or [] if h]
            results.append(tag_document(SearchResult(
                title=item.get("title") or "",
                url=url,
                snippet=highlights[0] if highlights else "",
                display_link=display_host(url),
                highlights=highlights,
            )))
        return results
