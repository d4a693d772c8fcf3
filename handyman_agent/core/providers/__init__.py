"""Provider detection and registry for multi-LLM support."""

from __future__ import annotations

from typing import Type

from handyman_agent.core.providers.base import BaseGenerationProvider


def detect_provider(model: str) -> str:
    """Detect the provider name from a model string.

    Returns "cerebras", "openai", "google", or "anthropic".
    """
    model_lower = model.lower()

    # Open models served by Cerebras
    if any(model_lower.startswith(p) for p in ("llama", "qwen-", "gpt-oss")):
        return "cerebras"

    # OpenAI models
    if any(model_lower.startswith(p) for p in ("gpt-", "o1-", "o3-", "o4-")):
        return "openai"

    # Google Gemini models
    if model_lower.startswith("gemini-"):
        return "google"

    # Default to Anthropic (claude-* and anything unknown)
    return "anthropic"


def get_provider_class(name: str) -> Type[BaseGenerationProvider]:
    """Return the provider class for the given provider name.

    Lazy-imports so SDKs are only loaded when actually needed.

    Raises:
        ImportError: If the required SDK is not installed.
        ValueError: If the provider name is unknown.
    """
    if name == "anthropic":
        from handyman_agent.core.providers.anthropic import AnthropicProvider
        return AnthropicProvider

    if name in ("openai", "cerebras"):
        try:
            from handyman_agent.core.providers.openai import (
                CerebrasProvider,
                OpenAIProvider,
            )
        except ImportError:
            raise ImportError(
                "OpenAI SDK not installed. Install it with: "
                "pip install openai"
            )
        return CerebrasProvider if name == "cerebras" else OpenAIProvider

    if name == "google":
        try:
            from handyman_agent.core.providers.google import GoogleProvider
        except ImportError:
            raise ImportError(
                "Google GenAI SDK not installed. Install it with: "
                "pip install handyman-connector[google]"
            )
        return GoogleProvider

    raise ValueError(f"Unknown provider: {name!r}")
