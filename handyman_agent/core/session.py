"""Session navigation — phases, command classification, and transitions.

``transition`` is pure: it reads a session and a command and says what
should happen. ``SessionStateMachine.apply`` is the only place session
state changes.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from handyman_agent.core.catalog import ProjectCatalog
from handyman_agent.core.models import InstructionStep, Phase, Project

logger = logging.getLogger(__name__)


class Command(Enum):
    NEXT = "next"
    BACK = "back"
    REPEAT = "repeat"
    RESTART = "restart"
    NEW_PROJECT = "new-project"
    OTHER = "other"


# Checked in this order; first keyword hit wins
NAVIGATION_KEYWORDS = (
    (Command.NEXT, ("next", "continue", "forward")),
    (Command.BACK, ("back", "previous", "last")),
    (Command.REPEAT, ("repeat", "again", "what")),
    (Command.RESTART, ("start over", "restart", "beginning")),
)
NEW_PROJECT_KEYWORDS = ("new", "another", "different")


class Effect(Enum):
    START_RESOLUTION = "start-resolution"
    AWAIT_RESOLUTION = "await-resolution"
    SHOW_STEP = "show-step"
    SHOW_COMPLETION = "show-completion"
    SHOW_SELECTION = "show-selection"
    SHOW_NOT_FOUND = "show-not-found"
    IGNORED = "ignored"


@dataclass
class UserSession:
    session_id: str
    phase: Phase = Phase.WELCOME
    project: Optional[Project] = None
    step_index: int = 0
    catalog: ProjectCatalog = field(default_factory=ProjectCatalog)
    started_at: float = field(default_factory=time.monotonic)
    resolving: bool = False

    def elapsed(self, now: Optional[float] = None) -> float:
        """Seconds since the session started."""
        return (time.monotonic() if now is None else now) - self.started_at

    @property
    def current_step(self) -> Optional[InstructionStep]:
        if self.project is None or self.phase is not Phase.BUILDING:
            return None
        return self.project.steps[self.step_index]


@dataclass(frozen=True)
class Transition:
    phase: Phase
    effect: Effect
    project: Optional[Project] = None
    step_index: int = 0


def classify(text: str, phase: Phase) -> Command:
    """Map free text to a command for the given phase."""
    text = text.lower().strip()
    if phase is Phase.COMPLETED:
        if any(k in text for k in NEW_PROJECT_KEYWORDS):
            return Command.NEW_PROJECT
        return Command.OTHER
    if phase is Phase.BUILDING:
        for command, keywords in NAVIGATION_KEYWORDS:
            if any(k in text for k in keywords):
                return command
    return Command.OTHER


def _stay(session: UserSession, effect: Effect = Effect.IGNORED) -> Transition:
    return Transition(
        phase=session.phase,
        effect=effect,
        project=session.project,
        step_index=session.step_index,
    )


def start_transition(project: Project) -> Transition:
    return Transition(Phase.BUILDING, Effect.SHOW_STEP, project, 0)


def transition(session: UserSession, command: Command) -> Transition:
    """Decide the next phase and effect for ``command``; no side effects."""
    phase = session.phase

    if phase is Phase.WELCOME:
        if session.resolving:
            return _stay(session, Effect.AWAIT_RESOLUTION)
        return _stay(session, Effect.START_RESOLUTION)

    if phase is Phase.SELECTING:
        project = session.catalog.select()
        if project is not None:
            return start_transition(project)
        if session.resolving:
            return _stay(session, Effect.AWAIT_RESOLUTION)
        return _stay(session, Effect.START_RESOLUTION)

    if phase is Phase.BUILDING:
        project = session.project
        if project is None:
            return _stay(session)
        index = session.step_index
        if command is Command.NEXT:
            if index + 1 >= project.total_steps:
                return Transition(Phase.COMPLETED, Effect.SHOW_COMPLETION, project, index)
            return Transition(Phase.BUILDING, Effect.SHOW_STEP, project, index + 1)
        if command is Command.BACK:
            if index <= 0:
                return _stay(session)
            return Transition(Phase.BUILDING, Effect.SHOW_STEP, project, index - 1)
        if command is Command.REPEAT:
            return _stay(session, Effect.SHOW_STEP)
        if command is Command.RESTART:
            return Transition(Phase.BUILDING, Effect.SHOW_STEP, project, 0)
        return _stay(session)

    if phase is Phase.COMPLETED and command is Command.NEW_PROJECT:
        return Transition(Phase.SELECTING, Effect.SHOW_SELECTION, None, 0)

    return _stay(session)


class SessionStateMachine:
    """Applies transitions to sessions and keeps the step index in range."""

    def apply(self, session: UserSession, t: Transition) -> Transition:
        if t.effect is Effect.IGNORED:
            logger.debug(
                "Session %s: command has no transition in %s",
                session.session_id, session.phase.value,
            )
            return t

        phase, effect, index = t.phase, t.effect, t.step_index
        if t.project is not None:
            if index >= t.project.total_steps:
                # One past the last step means the project is done
                phase, effect = Phase.COMPLETED, Effect.SHOW_COMPLETION
                index = t.project.total_steps - 1
            index = max(index, 0)
        else:
            index = 0

        if phase is not session.phase:
            logger.info(
                "Session %s: %s -> %s",
                session.session_id, session.phase.value, phase.value,
            )
        session.phase = phase
        session.project = t.project
        session.step_index = index
        return Transition(phase, effect, t.project, index)

    def handle(self, session: UserSession, text: str) -> Transition:
        command = classify(text, session.phase)
        logger.debug(
            "Session %s: %r -> %s (%s)",
            session.session_id, text, command.value, session.phase.value,
        )
        return self.apply(session, transition(session, command))

    def start_project(self, session: UserSession, project: Project) -> Transition:
        session.catalog.add(project)
        logger.info("Session %s: starting %r", session.session_id, project.name)
        return self.apply(session, start_transition(project))

    def resolution_failed(self, session: UserSession) -> Transition:
        """Fall back to selection when another project is available."""
        session.resolving = False
        if session.phase is Phase.WELCOME and len(session.catalog):
            return self.apply(
                session, Transition(Phase.SELECTING, Effect.SHOW_NOT_FOUND)
            )
        return _stay(session, Effect.SHOW_NOT_FOUND)
