"""Shared test fixtures for handyman-agent tests."""

from __future__ import annotations

from typing import Callable, Optional, Union

import pytest

from handyman_agent.core.models import (
    InstructionStep,
    Project,
    ProjectSource,
    SearchResult,
)
from handyman_agent.core.pipeline import PipelineContext
from handyman_agent.data.store import DataStore
from handyman_agent.search.base import SearchProvider


class FakeLLM:
    """Stands in for GenerationClient; answers by prompt substring."""

    def __init__(
        self,
        responses: Optional[dict[str, Optional[str]]] = None,
        configured: bool = True,
    ):
        self.responses = responses or {}
        self.configured = configured
        self.prompts: list[str] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def generate(self, prompt: str, max_tokens: int, temperature: float):
        self.prompts.append(prompt)
        if not self.configured:
            return None
        for marker, response in self.responses.items():
            if marker in prompt:
                return response
        return None


class FakeSearch(SearchProvider):
    """Returns canned results per query; records every query it sees."""

    def __init__(
        self,
        results: Union[dict[str, Optional[list[SearchResult]]], Callable, None] = None,
        default: Optional[list[SearchResult]] = None,
        primary: bool = True,
    ):
        super().__init__()
        self.results = results or {}
        self.default = default
        self.primary = primary
        self.queries: list[str] = []
        self.closed = False

    @property
    def is_configured(self) -> bool:
        return True

    async def search(self, query: str, num_results: int = 5):
        self.queries.append(query)
        if callable(self.results):
            return self.results(query)
        return self.results.get(query, self.default)

    async def aclose(self) -> None:
        self.closed = True


def make_result(title: str, url: str, snippet: str = "", **kwargs) -> SearchResult:
    return SearchResult(title=title, url=url, snippet=snippet, **kwargs)


def make_steps(count: int) -> list[InstructionStep]:
    return [
        InstructionStep(
            ordinal=i,
            title=f"Step title {i}",
            description=f"Do thing {i}",
            details=[f"detail {i}a", f"detail {i}b"],
            tip=f"tip {i}",
        )
        for i in range(1, count + 1)
    ]


@pytest.fixture
def fake_llm():
    return FakeLLM


@pytest.fixture
def fake_search():
    return FakeSearch


@pytest.fixture
def result():
    return make_result


@pytest.fixture
def temp_db(tmp_path):
    """DataStore with a temporary SQLite database."""
    db_path = str(tmp_path / "test.db")
    store = DataStore(db_path=db_path)
    yield store
    store.close()


@pytest.fixture
def sample_project() -> Project:
    return Project(
        id="barcode_0123456789012",
        name="Acme Bookshelf",
        steps=make_steps(3),
        source=ProjectSource.BARCODE_PIPELINE,
    )


@pytest.fixture
def hosted_project() -> Project:
    return Project(
        id="hosted_product",
        name="BILLY Bookcase (IKEA)",
        steps=make_steps(2),
        source=ProjectSource.HOSTED_DATASET,
    )


@pytest.fixture
def hosted_payload() -> dict:
    return {
        "product": {
            "id": "BILLY-80",
            "name": "BILLY Bookcase",
            "brand": "IKEA",
            "dimensions": {"width_cm": 80, "depth_cm": 28, "height_cm": 202},
            "color": "white",
            "material": "particleboard",
            "weight_kg": 29.5,
            "shelves": 6,
            "price_usd": 69,
        },
        "instruction_manual": {
            "tools_required": ["Phillips screwdriver", "Hammer"],
            "assembly_time_minutes": 60,
            "safety_warnings": ["Secure to wall to prevent tipping"],
            "steps": [
                {"step_number": 1, "description": "Attach sides to base", "parts_used": ["A", "B"]},
                {"step_number": 2, "description": "Insert shelf pins", "parts_used": ["C"]},
                {"step_number": 3, "description": "Nail back panel", "parts_used": []},
            ],
        },
    }


@pytest.fixture
def pipeline_llm():
    """Query LLM that identifies a LEGO set and composes instruction queries."""
    return FakeLLM({
        "simple search query for barcode": "0123456789012 LEGO",
        "confident product identification": "LEGO Classic Creative Box 10696",
        "assembly instructions": "LEGO 10696 building instructions",
    })


@pytest.fixture
def make_context():
    def factory(**overrides) -> PipelineContext:
        defaults = dict(
            query_llm=FakeLLM(),
            steps_llm=FakeLLM(configured=False),
            primary_search=FakeSearch(),
            secondary_search=FakeSearch(primary=False),
            fallback_delay=0.0,
        )
        defaults.update(overrides)
        return PipelineContext(**defaults)
    return factory
