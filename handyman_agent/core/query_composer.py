"""Query composer — turns barcodes and product titles into search queries."""

from __future__ import annotations

import logging
from typing import Optional

from handyman_agent.core.llm import GenerationClient, render_prompt
from handyman_agent.core.models import SearchResult

logger = logging.getLogger(__name__)

# Results handed to the title identification prompt
IDENTIFY_RESULT_LIMIT = 5


def first_line(text: Optional[str]) -> Optional[str]:
    """Return the first non-blank line of generated text, trimmed."""
    if not text:
        return None
    for line in text.splitlines():
        line = line.strip()
        if line:
            return line
    return None


def fallback_queries(barcode: str) -> list[str]:
    """Deterministic product queries tried when the generated one finds nothing."""
    return [
        f"{barcode} product",
        f"UPC {barcode}",
        f"barcode {barcode}",
        barcode,
    ]


def document_query(query: str) -> str:
    """Bias a query towards PDF manuals."""
    clean = query.replace('"', "").replace("'", "").strip()
    return f"{clean} filetype:pdf"


class QueryComposer:
    """Stateless wrapper around the generation provider for query text."""

    def __init__(self, llm: GenerationClient):
        self.llm = llm

    async def product_query(self, barcode: str) -> Optional[str]:
        prompt = render_prompt("product_query.txt", barcode=barcode)
        query = first_line(
            await self.llm.generate(prompt, max_tokens=50, temperature=0.2)
        )
        if query is None:
            logger.info("No product query generated for barcode %s", barcode)
        return query

    async def instruction_query(self, title: str) -> Optional[str]:
        prompt = render_prompt("instruction_query.txt", title=title)
        query = first_line(
            await self.llm.generate(prompt, max_tokens=50, temperature=0.1)
        )
        if query is None:
            logger.info("No instruction query generated for %r", title)
        return query

    async def identify_product(
        self, barcode: str, results: list[SearchResult]
    ) -> Optional[str]:
        """Ask for the product name most consistent across ranked results."""
        if not results:
            return None
        lines = []
        for i, r in enumerate(results[:IDENTIFY_RESULT_LIMIT], 1):
            lines.append(
                f"{i}. Title: {r.title}\n"
                f"   URL: {r.url}\n"
                f"   Snippet: {r.snippet or 'No description available'}"
            )
        prompt = render_prompt(
            "identify_product.txt",
            barcode=barcode,
            results="\n\n".join(lines),
        )
        return first_line(
            await self.llm.generate(prompt, max_tokens=100, temperature=0.1)
        )
