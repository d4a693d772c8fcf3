"""Step synthesizer — manual-grounded steps from the generation provider,
with keyword-selected templates as the fallback."""

from __future__ import annotations

import json
import logging
import re
from typing import Optional

from handyman_agent.core.errors import MalformedResponse
from handyman_agent.core.llm import GenerationClient, render_prompt
from handyman_agent.core.models import InstructionStep, number_steps
from handyman_agent.core.templates import fallback_steps

logger = logging.getLogger(__name__)

_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def parse_steps(text: Optional[str]) -> list[InstructionStep]:
    """Parse the first bracketed JSON array in ``text`` into steps.

    Ordinals are taken from position, not from the model's ``id`` field.

    Raises:
        MalformedResponse: No array, invalid JSON, or no usable step.
    """
    if not text:
        raise MalformedResponse("Empty step response")
    match = _ARRAY_RE.search(text)
    if not match:
        raise MalformedResponse("No JSON array found in step response")
    try:
        raw_steps = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Invalid step JSON: {e}") from e
    if not isinstance(raw_steps, list):
        raise MalformedResponse("Step JSON is not an array")

    steps = []
    for raw in raw_steps:
        if not isinstance(raw, dict) or not raw.get("title"):
            continue
        details = raw.get("details") or []
        if not isinstance(details, list):
            details = [details]
        diagrams = raw.get("diagram") or []
        if not isinstance(diagrams, list):
            diagrams = [diagrams]
        tip = raw.get("tips") or raw.get("tip")
        steps.append(InstructionStep(
            ordinal=0,
            title=str(raw["title"]).strip(),
            description=str(raw.get("description", "")).strip(),
            details=[str(d).strip() for d in details if str(d).strip()],
            tip=str(tip).strip() if tip else None,
            diagrams=[str(d) for d in diagrams],
        ))
    if not steps:
        raise MalformedResponse("Step array contained no usable steps")
    return number_steps(steps)


class StepSynthesizer:
    """Produces the ordered step list for a product; never returns zero steps."""

    def __init__(self, llm: Optional[GenerationClient] = None):
        self.llm = llm

    async def synthesize(
        self, title: str, manual_url: str = ""
    ) -> list[InstructionStep]:
        if self.llm is None or not self.llm.is_configured:
            logger.info("No step generator configured, using template steps")
            return fallback_steps(title)

        if manual_url:
            logger.info("Extracting steps for %r from %s", title, manual_url)
            prompt = render_prompt(
                "extract_steps.txt", title=title, manual_url=manual_url
            )
        else:
            prompt = render_prompt("extract_steps_no_manual.txt", title=title)

        text = await self.llm.generate(prompt, max_tokens=2000, temperature=0.2)
        try:
            steps = parse_steps(text)
        except MalformedResponse as e:
            logger.info("Falling back to template steps for %r: %s", title, e)
            return fallback_steps(title)

        for step in steps:
            logger.debug("  %d. %s: %s", step.ordinal, step.title, step.description)
        logger.info("Generated %d steps for %r", len(steps), title)
        return steps
