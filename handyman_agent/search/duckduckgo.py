"""DuckDuckGo primary search — needs no API key."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from handyman_agent.core.models import SearchResult
from handyman_agent.search.base import SearchProvider, display_host, tag_document

logger = logging.getLogger(__name__)


def _text_search(query: str, max_results: int) -> list[dict]:
    from duckduckgo_search import DDGS

    with DDGS(timeout=10) as ddgs:
        return list(ddgs.text(query, max_results=max_results))


class DuckDuckGoSearch(SearchProvider):
    name = "duckduckgo"

    @property
    def is_configured(self) -> bool:
        try:
            import duckduckgo_search  # noqa: F401
        except ImportError:
            return False
        return True

    async def search(
        self, query: str, num_results: int = 5
    ) -> Optional[list[SearchResult]]:
        if not self.is_configured:
            logger.warning(
                "duckduckgo-search is not installed. "
                "Install it with: pip install handyman-connector[duckduckgo]"
            )
            return None

        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(_text_search, query, num_results),
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning("DuckDuckGo search failed for %r: %s", query, e)
            return None

        results = []
        for r in raw:
            url = r.get("href", "")
            if not url:
                continue
            results.append(tag_document(SearchResult(
                title=r.get("title", ""),
                url=url,
                snippet=r.get("body", ""),
                display_link=display_host(url),
            )))
        return self._filter(results)
