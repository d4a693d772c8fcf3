"""Tests for handyman_agent.core.llm — GenerationClient."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from handyman_agent.core.llm import GenerationClient, load_prompt, render_prompt


def _provider_class(generate=None, has_key=True):
    provider_class = MagicMock()
    provider_class.check_api_key.return_value = (has_key, "TEST_API_KEY")
    provider_class.return_value.generate = generate or AsyncMock(return_value="  text \n")
    return provider_class


class TestGenerate:
    @pytest.mark.asyncio
    @patch("handyman_agent.core.llm.get_provider_class")
    async def test_returns_stripped_text(self, mock_get):
        mock_get.return_value = _provider_class()
        llm = GenerationClient("claude-3-haiku-20240307")

        assert await llm.generate("p", max_tokens=50, temperature=0.2) == "text"
        mock_get.return_value.assert_called_once_with(
            "claude-3-haiku-20240307", timeout=10.0
        )

    @pytest.mark.asyncio
    @patch("handyman_agent.core.llm.get_provider_class")
    async def test_unconfigured_returns_none(self, mock_get):
        mock_get.return_value = _provider_class(has_key=False)
        llm = GenerationClient("claude-3-haiku-20240307")

        assert await llm.generate("p", 50, 0.2) is None
        mock_get.return_value.assert_not_called()

    @pytest.mark.asyncio
    @patch("handyman_agent.core.llm.get_provider_class")
    async def test_provider_error_returns_none(self, mock_get):
        mock_get.return_value = _provider_class(
            generate=AsyncMock(side_effect=RuntimeError("503"))
        )
        llm = GenerationClient("gpt-4o-mini")
        assert await llm.generate("p", 50, 0.2) is None

    @pytest.mark.asyncio
    @patch("handyman_agent.core.llm.get_provider_class")
    async def test_timeout_returns_none(self, mock_get):
        async def slow(*args):
            await asyncio.sleep(1)
            return "late"

        mock_get.return_value = _provider_class(generate=slow)
        llm = GenerationClient("gpt-4o-mini", timeout=0.01)
        assert await llm.generate("p", 50, 0.2) is None

    @pytest.mark.asyncio
    @patch("handyman_agent.core.llm.get_provider_class")
    async def test_blank_text_returns_none(self, mock_get):
        mock_get.return_value = _provider_class(
            generate=AsyncMock(return_value="   ")
        )
        llm = GenerationClient("gpt-4o-mini")
        assert await llm.generate("p", 50, 0.2) is None

    @pytest.mark.asyncio
    @patch("handyman_agent.core.llm.get_provider_class")
    async def test_missing_sdk_is_unconfigured(self, mock_get):
        mock_get.side_effect = ImportError("not installed")
        llm = GenerationClient("gemini-2.0-flash")
        assert llm.is_configured is False
        assert await llm.generate("p", 50, 0.2) is None


class TestIsConfigured:
    @patch.dict("os.environ", {"CEREBRAS_API_KEY": "csk"}, clear=True)
    def test_cerebras_key_present(self):
        llm = GenerationClient("llama3.1-8b")
        assert llm.provider_name == "cerebras"
        assert llm.is_configured is True

    @patch.dict("os.environ", {}, clear=True)
    def test_anthropic_key_missing(self):
        assert GenerationClient("claude-3-haiku-20240307").is_configured is False


class TestPrompts:
    def test_all_prompts_load(self):
        for name in (
            "product_query.txt",
            "instruction_query.txt",
            "identify_product.txt",
            "extract_steps.txt",
            "extract_steps_no_manual.txt",
        ):
            assert load_prompt(name).strip()

    def test_render_fills_placeholders(self):
        prompt = render_prompt("product_query.txt", barcode="0123456789012")
        assert "{BARCODE}" not in prompt
        assert "0123456789012" in prompt

    def test_render_manual_prompt(self):
        prompt = render_prompt(
            "extract_steps.txt",
            title="IKEA BILLY",
            manual_url="https://example.com/billy.pdf",
        )
        assert "IKEA BILLY" in prompt
        assert "https://example.com/billy.pdf" in prompt
