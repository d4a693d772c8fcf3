"""Anthropic (Claude) generation provider."""

from __future__ import annotations

import os

import anthropic

from handyman_agent.core.errors import MalformedResponse
from handyman_agent.core.providers.base import BaseGenerationProvider


class AnthropicProvider(BaseGenerationProvider):
    """Provider for Anthropic Claude models."""

    def __init__(self, model: str, timeout: float = 10.0):
        super().__init__(model, timeout)
        self.client = anthropic.AsyncAnthropic(timeout=timeout)

    async def generate(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )

        texts = [
            block.text for block in response.content if block.type == "text"
        ]
        if not texts:
            raise MalformedResponse(
                "Anthropic response did not contain a text block. "
                "Response: " + str(response.content)
            )
        return "".join(texts)

    @staticmethod
    def check_api_key() -> tuple[bool, str]:
        return bool(os.environ.get("ANTHROPIC_API_KEY")), "ANTHROPIC_API_KEY"
