"""Hosted product dataset — one authoritative product with its manual."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from handyman_agent.core.models import InstructionStep, Project, ProjectSource

logger = logging.getLogger(__name__)

HOSTED_PROJECT_ID = "hosted_product"
DEFAULT_TTL = 300.0


def _manual(data: dict[str, Any]) -> dict[str, Any]:
    manual = data.get("instruction_manual")
    return manual if isinstance(manual, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


class HostedDataset:
    """Fetches ``{product, instruction_manual}`` with a five-minute cache.

    Every public method is best-effort: failures are logged and come back
    as ``None`` (or ``False`` for ``refresh``).
    """

    def __init__(
        self,
        url: Optional[str],
        ttl: float = DEFAULT_TTL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.url = url
        self.ttl = ttl
        self.timeout = timeout
        self._client = client
        self._clock = clock
        self._data: Optional[dict[str, Any]] = None
        self._fetched_at: Optional[float] = None

    @property
    def cached(self) -> Optional[dict[str, Any]]:
        return self._data

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def fetch(self) -> Optional[dict[str, Any]]:
        if (
            self._data is not None
            and self._fetched_at is not None
            and self._clock() - self._fetched_at < self.ttl
        ):
            return self._data
        if not self.url:
            return None

        logger.debug("Fetching product data from %s", self.url)
        try:
            response = await self._get_client().get(
                self.url, headers={"Accept": "application/json"}
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to fetch hosted product data: %s", e)
            return None

        if not isinstance(data, dict) or not isinstance(data.get("product"), dict):
            logger.warning("Hosted product data has no product record")
            return None

        self._data = data
        self._fetched_at = self._clock()
        logger.info("Loaded hosted product %r", data["product"].get("name"))
        return data

    async def load_project(self) -> Optional[Project]:
        """Convert the hosted manual into a Project."""
        data = await self.fetch()
        if data is None:
            return None
        product = data["product"]
        manual = _manual(data)
        warnings = _as_list(manual.get("safety_warnings"))
        tip = str(warnings[0]) if warnings else "Follow safety guidelines"

        steps: list[InstructionStep] = []
        for raw in _as_list(manual.get("steps")):
            if not isinstance(raw, dict):
                logger.debug("Skipping malformed hosted step: %r", raw)
                continue
            ordinal = len(steps) + 1
            steps.append(InstructionStep(
                ordinal=ordinal,
                title=f"Step {raw.get('step_number', ordinal)}",
                description=str(raw.get("description", "")),
                details=[str(p) for p in _as_list(raw.get("parts_used"))],
                tip=tip,
            ))
        if not steps:
            logger.warning("Hosted product %r has no manual steps", product.get("name"))
            return None

        return Project(
            id=HOSTED_PROJECT_ID,
            name=f"{product.get('name', 'Product')} ({product.get('brand', 'unknown')})",
            steps=steps,
            source=ProjectSource.HOSTED_DATASET,
        )

    async def describe(self) -> Optional[str]:
        """One-line identification of the hosted product."""
        data = await self.fetch()
        if data is None:
            return None
        product = data["product"]
        description = f"{product.get('name')} by {product.get('brand')}"
        dims = product.get("dimensions")
        if isinstance(dims, dict):
            description += (
                f" ({dims.get('width_cm')}x{dims.get('depth_cm')}"
                f"x{dims.get('height_cm')} cm)"
            )
        if product.get("weight_kg"):
            description += f", weighs {product['weight_kg']} kg"
        if product.get("price_usd"):
            description += f", priced at ${product['price_usd']}"
        if product.get("color"):
            description += f", color: {product['color']}"
        return description

    def summary(self) -> str:
        """Product and assembly summary of the cached data."""
        if self._data is None:
            return "No data loaded"
        product = self._data["product"]
        manual = _manual(self._data)

        lines = [
            f"{product.get('name')} by {product.get('brand')}",
            f"Model: {product.get('id')}",
            f"Color: {product.get('color')}",
            f"Material: {product.get('material')}",
        ]
        dims = product.get("dimensions")
        if isinstance(dims, dict):
            lines.append(
                f"Size: {dims.get('width_cm')}x{dims.get('depth_cm')}"
                f"x{dims.get('height_cm')} cm"
            )
        if product.get("weight_kg"):
            lines.append(f"Weight: {product['weight_kg']} kg")
        if product.get("price_usd"):
            lines.append(f"Price: ${product['price_usd']}")
        if product.get("shelves"):
            lines.append(f"Shelves: {product['shelves']}")

        if manual:
            lines += [
                "",
                "Assembly Info:",
                f"Time: {manual.get('assembly_time_minutes')} minutes",
                f"Steps: {len(_as_list(manual.get('steps')))}",
                f"Tools: {', '.join(str(t) for t in _as_list(manual.get('tools_required')))}",
            ]
            warnings = _as_list(manual.get("safety_warnings"))
            if warnings:
                lines += ["", "Safety Warnings:"] + [str(w) for w in warnings]
        return "\n".join(lines)

    async def refresh(self) -> bool:
        self._data = None
        self._fetched_at = None
        return await self.fetch() is not None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
