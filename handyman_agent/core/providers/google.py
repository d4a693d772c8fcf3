"""Google Gemini generation provider."""

from __future__ import annotations

import os

from google import genai
from google.genai import types

from handyman_agent.core.errors import MalformedResponse
from handyman_agent.core.providers.base import BaseGenerationProvider


class GoogleProvider(BaseGenerationProvider):
    """Provider for Google Gemini models."""

    def __init__(self, model: str, timeout: float = 10.0):
        super().__init__(model, timeout)
        self.client = genai.Client(
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    async def generate(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                max_output_tokens=max_tokens,
                temperature=temperature,
            ),
        )

        if not response.text:
            raise MalformedResponse(
                "Gemini response did not contain text. "
                "Response: " + str(response)
            )
        return response.text

    @staticmethod
    def check_api_key() -> tuple[bool, str]:
        return bool(os.environ.get("GOOGLE_API_KEY")), "GOOGLE_API_KEY"
