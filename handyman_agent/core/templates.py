"""Fixed step templates used when no generated steps are available."""

from __future__ import annotations

from typing import Optional

from handyman_agent.core.models import InstructionStep, SearchResult

CONSTRUCTION_TOY_KEYWORDS = ("lego",)
FURNITURE_KEYWORDS = ("shelf", "table", "desk", "chair")

# (title, description, details, tip)
KIT_BUILD = (
    ("Open & Sort", "Open package and organize pieces",
     ("Open all bags", "Sort by color/size", "Check piece count"),
     "Use small bowls to organize pieces"),
    ("Follow Instructions", "Start with step 1 of the manual",
     ("Locate first pieces", "Connect as shown", "Check orientation"),
     "Work on a flat surface"),
    ("Build Base", "Complete the foundation",
     ("Connect base pieces", "Ensure stability", "Check alignment"),
     "Press pieces firmly together"),
    ("Add Details", "Attach smaller components",
     ("Add decorative pieces", "Attach moving parts", "Check connections"),
     "Don't force pieces"),
    ("Final Assembly", "Complete the model",
     ("Add final pieces", "Check all connections", "Compare to image"),
     "Display proudly!"),
)

FURNITURE = (
    ("Unpack All Parts", "Remove and organize components",
     ("Lay out all pieces", "Check parts list", "Organize hardware"),
     "Keep packaging until complete"),
    ("Prepare Tools", "Gather necessary tools",
     ("Check included tools", "Get screwdriver if needed", "Clear workspace"),
     "Read all instructions first"),
    ("Assemble Frame", "Build the main structure",
     ("Connect main panels", "Insert screws loosely", "Check alignment"),
     "Don't fully tighten until aligned"),
    ("Add Components", "Attach shelves or surfaces",
     ("Position components", "Secure with hardware", "Tighten all screws"),
     "Work systematically"),
    ("Final Steps", "Complete assembly",
     ("Add back panel if needed", "Attach anti-tip hardware", "Position in place"),
     "Secure to wall for safety"),
)

GENERIC = (
    ("Preparation", "Unpack and organize",
     ("Open packaging", "Check all parts", "Read instructions"),
     "Take your time"),
    ("Initial Assembly", "Start main assembly",
     ("Begin with base", "Follow diagram", "Connect main parts"),
     "Work on flat surface"),
    ("Continue Building", "Add components",
     ("Attach additional parts", "Check connections", "Follow sequence"),
     "Don't force connections"),
    ("Final Assembly", "Complete the build",
     ("Add final pieces", "Tighten all connections", "Check stability"),
     "Review all steps"),
    ("Completion", "Finish and test",
     ("Verify assembly", "Test functionality", "Clean up"),
     "Keep manual for reference"),
)


def _build(template: tuple) -> list[InstructionStep]:
    return [
        InstructionStep(
            ordinal=i,
            title=title,
            description=description,
            details=list(details),
            tip=tip,
        )
        for i, (title, description, details, tip) in enumerate(template, 1)
    ]


def select_template(title: str) -> tuple:
    title_lower = title.lower()
    if any(k in title_lower for k in CONSTRUCTION_TOY_KEYWORDS):
        return KIT_BUILD
    if any(k in title_lower for k in FURNITURE_KEYWORDS):
        return FURNITURE
    return GENERIC


def fallback_steps(title: str) -> list[InstructionStep]:
    """Five keyword-selected steps; never empty."""
    return _build(select_template(title))


def degraded_steps(result: Optional[SearchResult]) -> list[InstructionStep]:
    """Three generic steps for a product known only from neural search."""
    highlight = result.highlights[0] if result and result.highlights else None
    reference = result.url if result else ""
    return [
        InstructionStep(
            ordinal=1,
            title="Preparation",
            description="Gather tools and check components",
            details=["Check all parts are present", "Gather required tools"],
            tip=highlight or "Follow manufacturer guidelines",
        ),
        InstructionStep(
            ordinal=2,
            title="Assembly",
            description="Follow the main assembly steps",
            details=["Follow instructions carefully", "Take your time"],
            tip=f"Reference: {reference}",
        ),
        InstructionStep(
            ordinal=3,
            title="Completion",
            description="Final checks and cleanup",
            details=["Verify all connections", "Clean up workspace"],
            tip="Product identified via barcode scan",
        ),
    ]
