"""Base class for text-generation providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseGenerationProvider(ABC):
    """Abstract base for generation provider implementations."""

    def __init__(self, model: str, timeout: float = 10.0):
        self.model = model
        self.timeout = timeout

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Send a single-turn prompt and return the generated text.

        Args:
            prompt: The full user prompt.
            max_tokens: Output token budget.
            temperature: Sampling temperature.

        Returns:
            The raw generated text.

        Raises:
            MalformedResponse: If the response carries no text.
        """

    @staticmethod
    @abstractmethod
    def check_api_key() -> tuple[bool, str]:
        """Check whether the required API key is set.

        Returns:
            (is_set, env_var_name) — e.g. (True, "ANTHROPIC_API_KEY").
        """
