"""Resolution pipeline — barcode → product title → manual → steps."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from handyman_agent.config import DEFAULT_OBJECT_PATH, Settings
from handyman_agent.core.chain import Strategy, first_success
from handyman_agent.core.errors import NoResultFound
from handyman_agent.core.llm import GenerationClient
from handyman_agent.core.manual_locator import locate_manual
from handyman_agent.core.models import (
    Project,
    ProjectSource,
    ResolutionCacheEntry,
    SearchResult,
)
from handyman_agent.core.query_composer import (
    QueryComposer,
    document_query,
    fallback_queries,
)
from handyman_agent.core.step_synthesizer import StepSynthesizer
from handyman_agent.core.templates import degraded_steps, fallback_steps
from handyman_agent.data.hosted import HostedDataset
from handyman_agent.data.object_store import (
    HttpObjectStore,
    ObjectStore,
    SupabaseObjectStore,
    persist_entry,
)
from handyman_agent.data.store import DataStore
from handyman_agent.data.token_source import TokenSource
from handyman_agent.search.base import SearchProvider

logger = logging.getLogger(__name__)

PRODUCT_RESULTS = 5
MANUAL_RESULTS = 10
SECONDARY = "secondary"

# Called with an event name ("identified", "manual_found") and details
ProgressCallback = Callable[[str, dict[str, Any]], None]


def project_id_for(barcode: str) -> str:
    return f"barcode_{barcode}"


class ResolutionCache:
    """Barcode → resolved project. Entries are never replaced."""

    def __init__(self) -> None:
        self._entries: dict[str, ResolutionCacheEntry] = {}

    def get(self, barcode: str) -> Optional[ResolutionCacheEntry]:
        return self._entries.get(barcode)

    def put(self, entry: ResolutionCacheEntry) -> ResolutionCacheEntry:
        """Store ``entry`` unless one exists; return whichever is cached."""
        existing = self._entries.get(entry.barcode)
        if existing is not None:
            logger.debug("Keeping existing cache entry for %s", entry.barcode)
            return existing
        self._entries[entry.barcode] = entry
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, barcode: object) -> bool:
        return barcode in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class PipelineContext:
    """Everything the pipeline and the session layer share."""

    query_llm: GenerationClient
    primary_search: SearchProvider
    steps_llm: Optional[GenerationClient] = None
    secondary_search: Optional[SearchProvider] = None
    token_source: Optional[TokenSource] = None
    hosted: Optional[HostedDataset] = None
    object_store: Optional[ObjectStore] = None
    store: Optional[DataStore] = None
    cache: ResolutionCache = field(default_factory=ResolutionCache)
    object_path: str = DEFAULT_OBJECT_PATH
    fallback_delay: float = 0.5

    @classmethod
    def from_settings(
        cls, settings: Settings, store: Optional[DataStore] = None
    ) -> PipelineContext:
        from handyman_agent.search.duckduckgo import DuckDuckGoSearch
        from handyman_agent.search.exa import ExaSearch
        from handyman_agent.search.serpapi import SerpApiSearch

        timeout = settings.timeout
        primary: SearchProvider
        if settings.search_provider == "duckduckgo":
            primary = DuckDuckGoSearch(timeout=timeout)
        else:
            primary = SerpApiSearch(settings.serpapi_key, timeout=timeout)

        object_store: Optional[ObjectStore] = None
        if settings.object_store == "s3" and settings.bucket_url:
            object_store = HttpObjectStore(settings.bucket_url, timeout=timeout)
        elif (
            settings.object_store == "supabase"
            and settings.supabase_url
            and settings.supabase_key
        ):
            object_store = SupabaseObjectStore(
                settings.supabase_url,
                settings.supabase_key,
                bucket=settings.supabase_bucket,
                timeout=timeout,
            )

        return cls(
            query_llm=GenerationClient(settings.query_model, timeout=timeout),
            steps_llm=GenerationClient(settings.model, timeout=timeout),
            primary_search=primary,
            secondary_search=ExaSearch(settings.exa_key, timeout=timeout),
            token_source=TokenSource(
                settings.token_url, ttl=settings.token_ttl, timeout=timeout
            ),
            hosted=HostedDataset(settings.dataset_url, timeout=timeout),
            object_store=object_store,
            store=store,
            object_path=settings.object_path,
            fallback_delay=settings.fallback_delay,
        )

    def object_path_for(self, barcode: str) -> str:
        return self.object_path.replace("{barcode}", barcode)

    async def aclose(self) -> None:
        closers = [self.primary_search, self.secondary_search, self.token_source,
                   self.hosted, self.object_store]
        for resource in closers:
            if resource is not None:
                await resource.aclose()


class ResolutionPipeline:
    """Resolves a barcode into a Project, at most once per barcode.

    ``resolve`` never raises. ``None`` means every fallback was exhausted
    before a product title was known; once a title is known the result
    degrades to template steps instead of failing.

    Two sessions resolving the same new barcode at the same time may both
    run the full pipeline; the cache keeps whichever entry lands first.
    """

    def __init__(self, context: PipelineContext):
        self.context = context
        self.composer = QueryComposer(context.query_llm)
        self.synthesizer = StepSynthesizer(context.steps_llm)
        self._pending: set[asyncio.Task] = set()
        self.executions = 0

    # ── Chains ───────────────────────────────────────────────────────

    def _search(
        self, provider: SearchProvider, query: str, num_results: Optional[int] = None
    ) -> Callable[[], Any]:
        async def run() -> Optional[list[SearchResult]]:
            if num_results is None:
                return await provider.search(query)
            return await provider.search(query, num_results)
        return run

    def product_strategies(
        self, barcode: str, query: str
    ) -> list[Strategy[list[SearchResult]]]:
        ctx = self.context
        strategies = [
            Strategy(f"primary:{query}", self._search(ctx.primary_search, query, PRODUCT_RESULTS)),
        ]
        for i, fallback in enumerate(fallback_queries(barcode)):
            strategies.append(Strategy(
                f"fallback:{fallback}",
                self._search(ctx.primary_search, fallback, PRODUCT_RESULTS),
                delay=ctx.fallback_delay if i else 0.0,
            ))
        if ctx.secondary_search is not None:
            strategies.append(Strategy(
                f"{SECONDARY}:{query}",
                self._search(ctx.secondary_search, query),
                delay=ctx.fallback_delay,
            ))
        return strategies

    def manual_strategies(
        self, instruction_query: str
    ) -> list[Strategy[list[SearchResult]]]:
        primary = self.context.primary_search
        pdf_query = document_query(instruction_query)
        return [
            Strategy(f"document:{pdf_query}", self._search(primary, pdf_query, MANUAL_RESULTS)),
            Strategy(f"plain:{instruction_query}", self._search(primary, instruction_query, MANUAL_RESULTS)),
        ]

    # ── Resolution ───────────────────────────────────────────────────

    async def resolve(
        self,
        command: str,
        barcode: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Optional[Project]:
        cached = self.context.cache.get(barcode)
        if cached is not None:
            logger.info("Using cached project for barcode %s", barcode)
            return cached.project

        try:
            return await self._resolve(command, barcode, on_progress)
        except NoResultFound as e:
            logger.info("Could not resolve barcode %s: %s", barcode, e)
        except Exception:
            logger.exception("Resolution of barcode %s failed", barcode)
        return None

    async def _resolve(
        self,
        command: str,
        barcode: str,
        on_progress: Optional[ProgressCallback],
    ) -> Project:
        self.executions += 1
        logger.info("Resolving barcode %s (command %r)", barcode, command)

        query = await self.composer.product_query(barcode)
        if not query:
            raise NoResultFound("no product identification query")
        logger.info("Product identification query: %r", query)

        found = await first_success(self.product_strategies(barcode, query))
        if found is None:
            raise NoResultFound("every product search came back empty")
        results = found.value

        if found.name.startswith(SECONDARY):
            return self._degraded_project(barcode, query, results[0])

        title = await self.composer.identify_product(barcode, results)
        if not title:
            raise NoResultFound("no product title in search results")
        logger.info("Identified product %r", title)
        _notify(on_progress, "identified", barcode=barcode, title=title)

        instruction_query = await self.composer.instruction_query(title)
        if not instruction_query:
            raise NoResultFound(f"no instruction query for {title!r}")
        logger.info("Instruction query: %r", instruction_query)

        manual_url = await self._find_manual(title, instruction_query, on_progress)
        try:
            steps = await self.synthesizer.synthesize(title, manual_url)
        except Exception as e:
            logger.warning("Step synthesis failed for %r: %s", title, e)
            steps = fallback_steps(title)

        project = Project(
            id=project_id_for(barcode),
            name=title,
            steps=steps,
            source=ProjectSource.BARCODE_PIPELINE,
        )
        entry = self.context.cache.put(ResolutionCacheEntry(
            barcode=barcode,
            project=project,
            manual_url=manual_url or None,
            resolved_at=datetime.now(timezone.utc),
        ))
        if entry.project is project:
            logger.info("Cached project %r for barcode %s", title, barcode)
            self._persist(entry)
        return entry.project

    async def _find_manual(
        self,
        title: str,
        instruction_query: str,
        on_progress: Optional[ProgressCallback],
    ) -> str:
        found = await first_success(self.manual_strategies(instruction_query))
        if found is None:
            logger.info("No manual search results for %r", title)
            return ""
        candidate = locate_manual(found.value)
        if candidate is None:
            return ""
        _notify(
            on_progress, "manual_found", title=title, manual_title=candidate.title
        )
        return candidate.url

    def _degraded_project(
        self, barcode: str, query: str, result: SearchResult
    ) -> Project:
        logger.info("Only neural search matched %s; building degraded project", barcode)
        return Project(
            id=project_id_for(barcode),
            name=result.title or query,
            steps=degraded_steps(result),
            source=ProjectSource.BARCODE_PIPELINE,
        )

    # ── Persistence ──────────────────────────────────────────────────

    def _persist(self, entry: ResolutionCacheEntry) -> None:
        ctx = self.context
        task = asyncio.create_task(persist_entry(
            entry, ctx.object_store, ctx.object_path_for(entry.barcode), ctx.store
        ))
        self._pending.add(task)
        task.add_done_callback(self._persist_done)

    def _persist_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Persisting resolved project failed: %s", exc)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for detached persistence tasks to settle."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


def _notify(callback: Optional[ProgressCallback], event: str, **info: Any) -> None:
    if callback is None:
        return
    try:
        callback(event, info)
    except Exception as e:
        logger.warning("Progress callback failed for %s: %s", event, e)
