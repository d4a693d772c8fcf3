"""Tests for the query composer."""

from __future__ import annotations

import pytest

from handyman_agent.core.query_composer import (
    QueryComposer,
    document_query,
    fallback_queries,
    first_line,
)


class TestFirstLine:
    def test_trims_and_takes_first_non_blank(self):
        assert first_line("\n  LEGO 10696 manual  \nsecond") == "LEGO 10696 manual"

    def test_empty_is_none(self):
        assert first_line(None) is None
        assert first_line("  \n ") is None


class TestDeterministicQueries:
    def test_fallback_queries_in_order(self):
        assert fallback_queries("123") == [
            "123 product", "UPC 123", "barcode 123", "123",
        ]

    def test_document_query_strips_quotes(self):
        assert (
            document_query('"IKEA BILLY" \'manual\'')
            == "IKEA BILLY manual filetype:pdf"
        )


class TestQueryComposer:
    @pytest.mark.asyncio
    async def test_product_query(self, fake_llm):
        llm = fake_llm({"barcode 0123": "0123 LEGO\nextra"})
        composer = QueryComposer(llm)
        assert await composer.product_query("0123") == "0123 LEGO"
        assert "0123" in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_unconfigured_provider_gives_none(self, fake_llm):
        composer = QueryComposer(fake_llm(configured=False))
        assert await composer.product_query("0123") is None
        assert await composer.instruction_query("LEGO 10696") is None

    @pytest.mark.asyncio
    async def test_instruction_query(self, fake_llm):
        composer = QueryComposer(fake_llm({"LEGO 10696": "LEGO 10696 instructions"}))
        assert await composer.instruction_query("LEGO 10696") == "LEGO 10696 instructions"

    @pytest.mark.asyncio
    async def test_identify_product_uses_top_five(self, fake_llm, result):
        llm = fake_llm({"Search Results": "LEGO Classic 10696"})
        results = [result(f"Result {i}", f"https://e.com/{i}") for i in range(8)]

        title = await QueryComposer(llm).identify_product("0123", results)

        assert title == "LEGO Classic 10696"
        assert "5. Title: Result 4" in llm.prompts[0]
        assert "Result 5" not in llm.prompts[0]
        assert "No description available" in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_identify_product_without_results(self, fake_llm):
        llm = fake_llm({"Search Results": "anything"})
        assert await QueryComposer(llm).identify_product("0123", []) is None
        assert llm.prompts == []
