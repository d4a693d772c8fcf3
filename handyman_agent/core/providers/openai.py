"""OpenAI and OpenAI-compatible (Cerebras) generation providers."""

from __future__ import annotations

import os

import openai

from handyman_agent.core.errors import MalformedResponse
from handyman_agent.core.providers.base import BaseGenerationProvider

CEREBRAS_BASE_URL = "https://api.cerebras.ai/v1"


class OpenAIProvider(BaseGenerationProvider):
    """Provider for OpenAI models (GPT-4o, o1, o3, etc.)."""

    def __init__(self, model: str, timeout: float = 10.0):
        super().__init__(model, timeout)
        self.client = self._make_client(timeout)

    def _make_client(self, timeout: float) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(timeout=timeout)

    async def generate(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )

        if not response.choices or not response.choices[0].message.content:
            raise MalformedResponse(
                "Chat completion did not contain any content. "
                "Response: " + str(response)
            )
        return response.choices[0].message.content

    @staticmethod
    def check_api_key() -> tuple[bool, str]:
        return bool(os.environ.get("OPENAI_API_KEY")), "OPENAI_API_KEY"


class CerebrasProvider(OpenAIProvider):
    """Provider for Cerebras-hosted open models through the OpenAI SDK."""

    def _make_client(self, timeout: float) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(
            api_key=os.environ.get("CEREBRAS_API_KEY"),
            base_url=CEREBRAS_BASE_URL,
            timeout=timeout,
        )

    @staticmethod
    def check_api_key() -> tuple[bool, str]:
        return bool(os.environ.get("CEREBRAS_API_KEY")), "CEREBRAS_API_KEY"
