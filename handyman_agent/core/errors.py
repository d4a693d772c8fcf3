"""Failure taxonomy for provider calls and resolution."""

from __future__ import annotations


class HandymanError(Exception):
    """Base class for handyman-agent errors."""


class ProviderUnconfigured(HandymanError):
    """A required API key or endpoint is missing."""

    def __init__(self, provider: str, env_var: str):
        self.provider = provider
        self.env_var = env_var
        super().__init__(f"{provider} is not configured ({env_var} not set)")


class ProviderUnavailable(HandymanError):
    """Network failure, timeout, or non-2xx response from a provider."""


class MalformedResponse(HandymanError):
    """A provider answered with text that does not fit the expected schema."""


class NoResultFound(HandymanError):
    """Every fallback was exhausted without usable product data."""
