"""Core data models for handyman-agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ProjectSource(Enum):
    HOSTED_DATASET = "hosted-dataset"
    BARCODE_PIPELINE = "barcode-pipeline"
    VISION_IDENTIFICATION = "vision-identification"


class Phase(Enum):
    WELCOME = "welcome"
    SELECTING = "selecting"
    BUILDING = "building"
    COMPLETED = "completed"


@dataclass
class SearchResult:
    title: str
    url: str
    snippet: str = ""
    display_link: str = ""
    file_format: Optional[str] = None
    mime: Optional[str] = None
    highlights: list[str] = field(default_factory=list)


@dataclass
class ManualCandidate:
    result: SearchResult
    is_manual: bool
    format_tag: Optional[str] = None

    @property
    def url(self) -> str:
        return self.result.url

    @property
    def title(self) -> str:
        return self.result.title


@dataclass
class InstructionStep:
    ordinal: int
    title: str
    description: str
    details: list[str] = field(default_factory=list)
    tip: Optional[str] = None
    diagrams: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.ordinal,
            "title": self.title,
            "description": self.description,
            "details": list(self.details),
        }
        if self.tip:
            data["tips"] = self.tip
        if self.diagrams:
            data["diagram"] = list(self.diagrams)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], ordinal: int) -> InstructionStep:
        return cls(
            ordinal=ordinal,
            title=str(data["title"]),
            description=str(data.get("description", "")),
            details=[str(d) for d in data.get("details") or []],
            tip=data.get("tips") or data.get("tip"),
            diagrams=[str(d) for d in data.get("diagram") or []],
        )


def number_steps(steps: list[InstructionStep]) -> list[InstructionStep]:
    """Rewrite ordinals so they match 1-based position."""
    for position, step in enumerate(steps, 1):
        step.ordinal = position
    return steps


@dataclass
class Project:
    id: str
    name: str
    steps: list[InstructionStep]
    source: ProjectSource

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError(f"Project {self.id!r} has no steps")
        for position, step in enumerate(self.steps, 1):
            if step.ordinal != position:
                raise ValueError(
                    f"Step ordinal {step.ordinal} at position {position} "
                    f"in project {self.id!r}"
                )

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "totalSteps": self.total_steps,
            "source": self.source.value,
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        steps = [
            InstructionStep.from_dict(raw, i)
            for i, raw in enumerate(data.get("steps") or [], 1)
        ]
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            steps=steps,
            source=ProjectSource(data["source"]),
        )


@dataclass(frozen=True)
class ResolutionCacheEntry:
    barcode: str
    project: Project
    manual_url: Optional[str]
    resolved_at: datetime
