"""Per-session catalog of projects available for selection."""

from __future__ import annotations

from typing import Iterator, Optional

from handyman_agent.core.models import Project, ProjectSource

# Lower sorts first when choosing what to start
_SELECTION_ORDER = {
    ProjectSource.BARCODE_PIPELINE: 0,
    ProjectSource.VISION_IDENTIFICATION: 1,
    ProjectSource.HOSTED_DATASET: 2,
}


class ProjectCatalog:
    """Projects keyed by id, in insertion order."""

    def __init__(self) -> None:
        self._projects: dict[str, Project] = {}

    def add(self, project: Project) -> None:
        self._projects[project.id] = project

    def get(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def select(self) -> Optional[Project]:
        """Pipeline-resolved projects win over the hosted dataset."""
        if not self._projects:
            return None
        return min(
            self._projects.values(),
            key=lambda p: _SELECTION_ORDER.get(p.source, len(_SELECTION_ORDER)),
        )

    @property
    def projects(self) -> list[Project]:
        return list(self._projects.values())

    def has_source(self, source: ProjectSource) -> bool:
        return any(p.source == source for p in self._projects.values())

    def __contains__(self, project_id: object) -> bool:
        return project_id in self._projects

    def __iter__(self) -> Iterator[Project]:
        return iter(list(self._projects.values()))

    def __len__(self) -> int:
        return len(self._projects)
