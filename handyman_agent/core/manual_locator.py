"""Manual locator — picks the first search result that looks like a manual."""

from __future__ import annotations

import logging
from typing import Optional

from handyman_agent.core.models import ManualCandidate, SearchResult

logger = logging.getLogger(__name__)

# Paths on known hosts that serve building instructions directly
INSTRUCTION_PATHS = (
    "rebrickable.com/instructions/",
    "lego.com/service/buildinginstructions/",
)

# Hosts whose pages count as manuals when titled "instructions"
INSTRUCTION_HOSTS = ("rebrickable.com", "brickset.com", "bricklink.com")


def assess(result: SearchResult) -> ManualCandidate:
    """Annotate a result with a manual-likelihood verdict."""
    url = result.url or ""
    url_lower = url.lower()
    title = (result.title or "").lower()
    file_format = (result.file_format or "").lower()
    mime = (result.mime or "").lower()

    if ".pdf" in url_lower or "pdf" in file_format or "pdf" in mime:
        return ManualCandidate(result, is_manual=True, format_tag="pdf")
    if "pdf" in title:
        return ManualCandidate(result, is_manual=True, format_tag="pdf")
    if any(path in url for path in INSTRUCTION_PATHS):
        return ManualCandidate(result, is_manual=True, format_tag="html")
    if "instructions" in title and (
        any(host in url for host in INSTRUCTION_HOSTS) or "lego" in title
    ):
        return ManualCandidate(result, is_manual=True, format_tag="html")
    return ManualCandidate(result, is_manual=False)


def locate_manual(results: list[SearchResult]) -> Optional[ManualCandidate]:
    """Return the first manual-like result; provider order is the ranking."""
    for result in results:
        candidate = assess(result)
        logger.debug(
            "Checking result %r: manual=%s", result.title, candidate.is_manual
        )
        if candidate.is_manual:
            logger.info("Found manual: %r (%s)", result.title, result.url)
            return candidate
    logger.info("No manual found in %d results", len(results))
    return None
