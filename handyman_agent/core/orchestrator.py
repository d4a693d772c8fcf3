"""Orchestrator — sessions, commands, and background resolutions."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Coroutine, Optional, Protocol

from handyman_agent.core import render
from handyman_agent.core.models import Phase
from handyman_agent.core.pipeline import PipelineContext, ResolutionPipeline
from handyman_agent.core.session import (
    Command,
    Effect,
    SessionStateMachine,
    Transition,
    UserSession,
    transition,
)
from handyman_agent.data.hosted import HostedDataset
from handyman_agent.data.object_store import flush_uploads

logger = logging.getLogger(__name__)


class Display(Protocol):
    def show(self, session_id: str, text: str) -> None:
        """Push a screen to the session's display."""


class Orchestrator:
    """Routes commands from connected sessions to the state machine.

    Resolutions run as background tasks. When one finishes, the session
    is looked up again; if it has disconnected the result is dropped.
    """

    def __init__(
        self,
        context: PipelineContext,
        display: Optional[Display] = None,
        barcode: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.context = context
        self.display = display
        self.barcode = barcode
        self.clock = clock
        self.pipeline = ResolutionPipeline(context)
        self.machine = SessionStateMachine()
        self.sessions: dict[str, UserSession] = {}
        self._tasks: set[asyncio.Task] = set()

    # ── Lifecycle ────────────────────────────────────────────────────

    async def start(self) -> int:
        """Retry queued uploads from earlier runs."""
        ctx = self.context
        if ctx.object_store is None or ctx.store is None:
            return 0
        uploaded = await flush_uploads(ctx.object_store, ctx.store)
        if uploaded:
            logger.info("Uploaded %d queued projects", uploaded)
        return uploaded

    async def connect(self, session_id: str) -> str:
        session = UserSession(session_id=session_id, started_at=self.clock())
        self.sessions[session_id] = session
        logger.info("Session %s connected", session_id)
        if self.context.hosted is not None:
            self._spawn(self._load_hosted(session_id, self.context.hosted))
        return render.welcome(await self._current_barcode())

    def disconnect(self, session_id: str) -> None:
        if self.sessions.pop(session_id, None) is not None:
            logger.info("Session %s disconnected", session_id)

    async def drain(self) -> None:
        """Wait for background resolutions and persistence to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.pipeline.drain()

    async def aclose(self) -> None:
        await self.drain()
        await self.context.aclose()

    # ── Commands ─────────────────────────────────────────────────────

    async def handle(self, session_id: str, command: str) -> str:
        session = self.sessions.get(session_id)
        if session is None:
            return render.NO_SESSION

        text = command.lower().strip()
        t = self.machine.handle(session, text)

        if t.effect is Effect.START_RESOLUTION:
            # Claimed before the barcode fetch so commands arriving meanwhile wait
            session.resolving = True
            barcode = await self._current_barcode()
            if barcode is None:
                session.resolving = False
                logger.warning("No barcode available for session %s", session_id)
                return render.no_barcode()
            self._spawn(self._resolve(session_id, text, barcode))
            return render.scanning(barcode)
        if t.effect is Effect.AWAIT_RESOLUTION:
            return render.scanning(self._cached_barcode())
        return self.render_screen(session, t)

    def render_screen(self, session: UserSession, t: Optional[Transition] = None) -> str:
        """Screen for ``session``'s current state."""
        elapsed = session.elapsed(self.clock())
        effect = t.effect if t is not None else None

        if session.phase is Phase.BUILDING and session.project is not None:
            return render.step(session.project, session.step_index, elapsed)
        if session.phase is Phase.COMPLETED and session.project is not None:
            return render.completion(session.project, elapsed)
        if session.phase is Phase.SELECTING:
            return render.selection(session.catalog, self._cached_barcode())
        if effect is Effect.SHOW_NOT_FOUND:
            return render.not_found(self._cached_barcode(), bool(len(session.catalog)))
        return render.welcome(self._cached_barcode())

    async def handle_tool_call(
        self,
        session_id: str,
        tool_id: str,
        params: Optional[dict[str, Any]] = None,
    ) -> str:
        session = self.sessions.get(session_id)
        if session is None:
            return render.NO_SESSION
        logger.info("Tool called: %s", tool_id)

        if tool_id == "next_step":
            project = session.project
            if (
                session.phase is Phase.BUILDING
                and project is not None
                and session.step_index < project.total_steps - 1
            ):
                self.machine.apply(session, transition(session, Command.NEXT))
                return render.step_line(project, session.step_index)
            return "No more steps available."

        if tool_id == "previous_step":
            project = session.project
            if (
                session.phase is Phase.BUILDING
                and project is not None
                and session.step_index > 0
            ):
                self.machine.apply(session, transition(session, Command.BACK))
                return render.step_line(project, session.step_index)
            return "Already at the first step."

        if tool_id == "repeat_instruction":
            if session.phase is Phase.BUILDING and session.project is not None:
                return self.render_screen(session)
            return "No active instruction session."

        if tool_id == "identify_device":
            hosted = self.context.hosted
            description = await hosted.describe() if hosted is not None else None
            if description:
                return f"Identified: {description}"
            return "Could not identify device. Please try voice commands."

        if tool_id == "refresh_data":
            hosted = self.context.hosted
            if hosted is None or not await hosted.refresh():
                return "Could not refresh product data."
            await self._load_hosted(session_id, hosted)
            return "Product data refreshed."

        return f"Unknown tool: {tool_id}"

    # ── Background work ──────────────────────────────────────────────

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task failed: %s", exc)

    def _show(self, session_id: str, text: str) -> None:
        if self.display is not None and session_id in self.sessions:
            self.display.show(session_id, text)

    async def _load_hosted(self, session_id: str, hosted: HostedDataset) -> None:
        project = await hosted.load_project()
        session = self.sessions.get(session_id)
        if project is None or session is None:
            return
        session.catalog.add(project)
        logger.info("Hosted product loaded: %s", project.name)

    async def _resolve(self, session_id: str, command: str, barcode: str) -> None:
        def on_progress(event: str, info: dict[str, Any]) -> None:
            if event == "identified":
                self._show(session_id, render.identified(info["title"], info["barcode"]))
            elif event == "manual_found":
                self._show(
                    session_id, render.manual_found(info["title"], info["manual_title"])
                )

        project = await self.pipeline.resolve(command, barcode, on_progress)

        session = self.sessions.get(session_id)
        if session is None:
            logger.info("Session %s ended before %s resolved", session_id, barcode)
            return
        session.resolving = False

        if project is None:
            t = self.machine.resolution_failed(session)
            self._show(
                session_id, render.not_found(barcode, bool(len(session.catalog)))
            )
            logger.info("Session %s: no project for %s (%s)", session_id, barcode, t.phase.value)
            return

        if session.phase in (Phase.WELCOME, Phase.SELECTING):
            t = self.machine.start_project(session, project)
            self._show(session_id, self.render_screen(session, t))
        else:
            session.catalog.add(project)
            logger.info("Session %s: %r added to catalog", session_id, project.name)

    async def _current_barcode(self) -> Optional[str]:
        if self.barcode:
            return self.barcode
        if self.context.token_source is None:
            return None
        return await self.context.token_source.current()

    def _cached_barcode(self) -> Optional[str]:
        if self.barcode:
            return self.barcode
        if self.context.token_source is None:
            return None
        return self.context.token_source.cached
