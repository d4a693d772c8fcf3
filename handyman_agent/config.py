"""Settings resolved from environment variables, the config table, and defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from handyman_agent.data.store import DataStore

DEFAULT_MODEL = "claude-3-haiku-20240307"
DEFAULT_QUERY_MODEL = "llama3.1-8b"
DEFAULT_OBJECT_PATH = "informationlive.json"

# config key -> (environment variable or None, default)
CONFIG_KEYS: dict[str, tuple[Optional[str], Optional[str]]] = {
    "model": ("HANDYMAN_AGENT_MODEL", DEFAULT_MODEL),
    "query-model": ("HANDYMAN_AGENT_QUERY_MODEL", DEFAULT_QUERY_MODEL),
    "search-provider": ("HANDYMAN_AGENT_SEARCH", "serpapi"),
    "serpapi-key": ("SERPAPI_KEY", None),
    "exa-key": ("EXA_API_KEY", None),
    "token-url": ("HANDYMAN_AGENT_TOKEN_URL", None),
    "dataset-url": ("HANDYMAN_AGENT_DATASET_URL", None),
    "bucket-url": ("S3_BUCKET_URL", None),
    "object-store": ("HANDYMAN_AGENT_OBJECT_STORE", "s3"),
    "object-path": (None, DEFAULT_OBJECT_PATH),
    "supabase-url": ("HANDYMAN_AGENT_SUPABASE_URL", None),
    "supabase-key": ("HANDYMAN_AGENT_SUPABASE_KEY", None),
    "supabase-bucket": (None, "projects"),
    "timeout": (None, "10"),
    "fallback-delay": (None, "0.5"),
    "token-ttl": (None, "30"),
}

SEARCH_PROVIDERS = ("serpapi", "duckduckgo")
OBJECT_STORES = ("s3", "supabase", "off")
NUMERIC_KEYS = ("timeout", "fallback-delay", "token-ttl")


@dataclass(frozen=True)
class Settings:
    model: str = DEFAULT_MODEL
    query_model: str = DEFAULT_QUERY_MODEL
    search_provider: str = "serpapi"
    serpapi_key: Optional[str] = None
    exa_key: Optional[str] = None
    token_url: Optional[str] = None
    dataset_url: Optional[str] = None
    bucket_url: Optional[str] = None
    object_store: str = "s3"
    object_path: str = DEFAULT_OBJECT_PATH
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_bucket: str = "projects"
    timeout: float = 10.0
    fallback_delay: float = 0.5
    token_ttl: float = 30.0


def resolve_value(key: str, store: Optional[DataStore] = None) -> Optional[str]:
    """Resolve one key: env var → config table → default."""
    env_var, default = CONFIG_KEYS[key]
    if env_var:
        env_value = os.environ.get(env_var)
        if env_value:
            return env_value
    if store is not None:
        stored = store.get_config(key)
        if stored:
            return stored
    return default


def validate(key: str, value: str) -> Optional[str]:
    """Return an error message if ``value`` is not acceptable for ``key``."""
    if key not in CONFIG_KEYS:
        return f"Unknown config key: {key}. Valid keys: {', '.join(CONFIG_KEYS)}"
    if key == "search-provider" and value not in SEARCH_PROVIDERS:
        return f"search-provider must be one of: {', '.join(SEARCH_PROVIDERS)}"
    if key == "object-store" and value not in OBJECT_STORES:
        return f"object-store must be one of: {', '.join(OBJECT_STORES)}"
    if key in NUMERIC_KEYS:
        try:
            if float(value) <= 0:
                return f"{key} must be positive"
        except ValueError:
            return f"{key} must be a number"
    return None


def load_settings(store: Optional[DataStore] = None) -> Settings:
    values = {key: resolve_value(key, store) for key in CONFIG_KEYS}
    return Settings(
        model=values["model"] or DEFAULT_MODEL,
        query_model=values["query-model"] or DEFAULT_QUERY_MODEL,
        search_provider=values["search-provider"] or "serpapi",
        serpapi_key=values["serpapi-key"],
        exa_key=values["exa-key"],
        token_url=values["token-url"],
        dataset_url=values["dataset-url"],
        bucket_url=values["bucket-url"],
        object_store=values["object-store"] or "s3",
        object_path=values["object-path"] or DEFAULT_OBJECT_PATH,
        supabase_url=values["supabase-url"],
        supabase_key=values["supabase-key"],
        supabase_bucket=values["supabase-bucket"] or "projects",
        timeout=float(values["timeout"] or 10),
        fallback_delay=float(values["fallback-delay"] or 0.5),
        token_ttl=float(values["token-ttl"] or 30),
    )


def describe_limitations(settings: Settings) -> list[str]:
    """Warnings for features running in limited mode."""
    from handyman_agent.core.llm import GenerationClient

    warnings = []
    if not GenerationClient(settings.model).is_configured:
        warnings.append(
            f"No API key for {settings.model}: steps will come from templates"
        )
    if not GenerationClient(settings.query_model).is_configured:
        warnings.append(
            f"No API key for {settings.query_model}: "
            "product identification is disabled"
        )
    if settings.search_provider == "serpapi" and not settings.serpapi_key:
        warnings.append("SERPAPI_KEY not set: web search is disabled")
    if not settings.exa_key:
        warnings.append("EXA_API_KEY not set: neural search fallback is disabled")
    if not settings.token_url:
        warnings.append("No barcode source URL: barcodes must be given explicitly")
    if settings.object_store == "s3" and not settings.bucket_url:
        warnings.append("S3_BUCKET_URL not set: resolved projects are not uploaded")
    if settings.object_store == "supabase" and not (
        settings.supabase_url and settings.supabase_key
    ):
        warnings.append("Supabase not configured: resolved projects are not uploaded")
    return warnings
