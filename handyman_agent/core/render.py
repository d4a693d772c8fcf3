"""Screen text for the display collaborator."""

from __future__ import annotations

from typing import Optional

from handyman_agent.core.catalog import ProjectCatalog
from handyman_agent.core.models import Project

APP_NAME = "HANDYMAN"
PROGRESS_WIDTH = 10
NO_SESSION = "Please start a session first."


def _barcode(barcode: Optional[str]) -> str:
    return barcode or "Fetching..."


def progress_bar(current: int, total: int) -> str:
    filled = round(current / total * PROGRESS_WIDTH) if total else 0
    return f"[{'=' * filled}{' ' * (PROGRESS_WIDTH - filled)}] {current}/{total}"


def minutes(seconds: float) -> int:
    return max(0, round(seconds / 60))


def welcome(barcode: Optional[str]) -> str:
    return "\n".join([
        APP_NAME,
        "AI Handyman Assistant",
        "",
        f"Barcode: {_barcode(barcode)}",
        "Say anything to scan",
    ])


def scanning(barcode: Optional[str]) -> str:
    return "\n".join([
        "SCANNING BARCODE",
        "",
        _barcode(barcode),
        "",
        "Searching for product...",
        "Generating instructions...",
    ])


def identified(title: str, barcode: str) -> str:
    return "\n".join([
        "PRODUCT IDENTIFIED",
        "",
        title,
        "",
        f"Barcode: {barcode}",
        "",
        "Processing instructions...",
    ])


def manual_found(title: str, manual_title: str) -> str:
    return "\n".join([
        "INSTRUCTIONS FOUND",
        "",
        title,
        "",
        manual_title,
        "",
        "Ready to guide you!",
    ])


def selection(catalog: ProjectCatalog, barcode: Optional[str] = None) -> str:
    if not len(catalog):
        return "\n".join([
            "SEARCHING...",
            "",
            "Looking for instructions",
            f"Barcode: {_barcode(barcode)}",
            "",
            "Please wait...",
        ])
    lines = ["PRODUCTS FOUND:"]
    for project in catalog:
        lines += ["", project.name, f"Steps: {project.total_steps}"]
    lines += ["", "Say 'start' to begin"]
    return "\n".join(lines)


def step(project: Project, index: int, elapsed: float = 0.0) -> str:
    """Render one step.

    Raises:
        IndexError: ``index`` is outside ``[0, total_steps)``.
    """
    if not 0 <= index < project.total_steps:
        raise IndexError(
            f"Step index {index} out of range for {project.total_steps} steps"
        )
    current = project.steps[index]
    lines = [
        f"Step {current.ordinal}/{project.total_steps}",
        current.title,
        "",
        current.description,
    ]
    if current.details:
        lines.append("")
        lines += [f"{i}. {detail}" for i, detail in enumerate(current.details, 1)]
    if current.tip:
        lines += ["", f"Tip: {current.tip}"]
    lines += [
        "",
        f"{progress_bar(current.ordinal, project.total_steps)}  "
        f"{minutes(elapsed)} min",
        "Say 'next' or 'back'",
    ]
    return "\n".join(lines)


def step_line(project: Project, index: int) -> str:
    current = project.steps[index]
    return f"Step {current.ordinal}: {current.description}"


def completion(project: Project, elapsed: float = 0.0) -> str:
    return "\n".join([
        "COMPLETE!",
        f"{project.name} done",
        f"Time: {minutes(elapsed)} minutes",
        "",
        "Say 'new project'",
    ])


def not_found(barcode: Optional[str], has_alternative: bool = False) -> str:
    lines = [
        "PRODUCT NOT FOUND",
        "",
        f"Barcode: {_barcode(barcode)}",
        "",
    ]
    if has_alternative:
        lines.append("Say 'start' for the available project")
    else:
        lines.append("Say anything to try again")
    return "\n".join(lines)


def no_barcode() -> str:
    return "\n".join([
        "NO BARCODE",
        "",
        "Scan a product and try again",
    ])
