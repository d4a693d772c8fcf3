"""Generation client — provider-agnostic text generation with graceful failure."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from handyman_agent.core.errors import ProviderUnconfigured
from handyman_agent.core.providers import detect_provider, get_provider_class
from handyman_agent.core.providers.base import BaseGenerationProvider

logger = logging.getLogger(__name__)

_PROMPTS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "prompts")


def load_prompt(name: str) -> str:
    path = os.path.join(_PROMPTS_DIR, name)
    with open(path) as f:
        return f.read()


def render_prompt(name: str, **values: str) -> str:
    """Load a prompt template and fill its {PLACEHOLDER} markers."""
    prompt = load_prompt(name)
    for key, value in values.items():
        prompt = prompt.replace("{" + key.upper() + "}", value)
    return prompt


class GenerationClient:
    """Provider-agnostic client for short text generations.

    ``generate`` never raises for provider problems: an unconfigured
    provider, a timeout, or an SDK error all come back as ``None`` so
    callers can fall through to their deterministic path.
    """

    def __init__(self, model: str, timeout: float = 10.0):
        self.model = model
        self.timeout = timeout
        self.provider_name = detect_provider(model)
        self._provider: Optional[BaseGenerationProvider] = None

    @property
    def is_configured(self) -> bool:
        try:
            provider_class = get_provider_class(self.provider_name)
        except ImportError:
            return False
        has_key, _ = provider_class.check_api_key()
        return has_key

    def _get_provider(self) -> BaseGenerationProvider:
        if self._provider is None:
            try:
                provider_class = get_provider_class(self.provider_name)
            except ImportError as e:
                raise ProviderUnconfigured(self.provider_name, str(e))
            has_key, key_name = provider_class.check_api_key()
            if not has_key:
                raise ProviderUnconfigured(self.provider_name, key_name)
            self._provider = provider_class(self.model, timeout=self.timeout)
        return self._provider

    async def generate(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> Optional[str]:
        """Generate text, or return None if the provider is unusable."""
        try:
            provider = self._get_provider()
        except ProviderUnconfigured as e:
            logger.warning("Generation skipped: %s", e)
            return None

        try:
            text = await asyncio.wait_for(
                provider.generate(prompt, max_tokens, temperature),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "%s generation timed out after %.0fs", self.model, self.timeout
            )
            return None
        except Exception as e:
            logger.warning("%s generation failed: %s", self.model, e)
            return None

        text = (text or "").strip()
        return text or None
