"""Object storage for resolved projects — write-through with an offline queue."""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import timezone
from typing import Any, Optional

import httpx

from handyman_agent.core.errors import ProviderUnavailable
from handyman_agent.core.models import ResolutionCacheEntry
from handyman_agent.data.store import DataStore

logger = logging.getLogger(__name__)


def build_payload(entry: ResolutionCacheEntry) -> dict[str, Any]:
    """Serialize a resolved project the way the dashboard reads it."""
    timestamp = entry.resolved_at.astimezone(timezone.utc).isoformat()
    project = entry.project
    return {
        "barcode": entry.barcode,
        "product_title": project.name,
        "timestamp": timestamp,
        "pdf_url": entry.manual_url,
        "project": project.to_dict(),
        "metadata": {
            "source": project.source.value,
            "total_steps": project.total_steps,
            "generated_at": timestamp,
            "pdf_processed": bool(entry.manual_url),
        },
    }


class ObjectStore(ABC):
    """Write-only blob store keyed by path."""

    name: str = "object-store"

    @abstractmethod
    async def put(self, path: str, payload: dict[str, Any]) -> None:
        """Store ``payload`` as JSON at ``path``.

        Raises:
            ProviderUnavailable: The write did not succeed.
        """

    async def aclose(self) -> None:
        return None


class HttpObjectStore(ObjectStore):
    """Plain HTTP PUT into a publicly writable bucket (S3-style URL)."""

    name = "s3"

    def __init__(
        self,
        bucket_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.bucket_url = bucket_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def put(self, path: str, payload: dict[str, Any]) -> None:
        url = f"{self.bucket_url}/{path.lstrip('/')}"
        try:
            response = await self._get_client().put(
                url,
                content=json.dumps(payload, indent=2),
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"PUT {url} failed: {e}") from e
        logger.info("Uploaded %s", url)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class SupabaseObjectStore(ObjectStore):
    """Supabase Storage bucket upload with upsert."""

    name = "supabase"

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        bucket: str = "projects",
        timeout: float = 10.0,
    ):
        self.supabase_url = supabase_url
        self.supabase_key = supabase_key
        self.bucket = bucket
        self.timeout = timeout
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazy-initialize Supabase client."""
        if self._client is None:
            from supabase import create_client

            self._client = create_client(self.supabase_url, self.supabase_key)
        return self._client

    def _upload(self, path: str, body: bytes) -> None:
        self._get_client().storage.from_(self.bucket).upload(
            path,
            body,
            {"content-type": "application/json", "upsert": "true"},
        )

    async def put(self, path: str, payload: dict[str, Any]) -> None:
        body = json.dumps(payload, indent=2).encode()
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._upload, path, body),
                timeout=self.timeout,
            )
        except Exception as e:
            raise ProviderUnavailable(
                f"Supabase upload of {path} failed: {e}"
            ) from e
        logger.info("Uploaded %s to Supabase bucket %s", path, self.bucket)


async def persist_entry(
    entry: ResolutionCacheEntry,
    object_store: Optional[ObjectStore],
    path: str,
    store: Optional[DataStore] = None,
) -> bool:
    """Write a resolved project through to storage; queue it on failure.

    The local resolution log is written after the upload attempt, and a
    failure there never undoes or blocks the upload.
    """
    uploaded = False
    if object_store is not None:
        payload = build_payload(entry)
        try:
            await object_store.put(path, payload)
            uploaded = True
        except ProviderUnavailable as e:
            logger.warning("Failed to persist %s: %s", entry.barcode, e)
            if store is not None:
                store.queue_upload(path, payload)

    if store is not None:
        try:
            store.log_resolution(entry)
        except sqlite3.Error as e:
            logger.warning("Failed to log resolution of %s: %s", entry.barcode, e)
    return uploaded


async def flush_uploads(object_store: ObjectStore, store: DataStore) -> int:
    """Try to upload any pending items from the upload queue."""
    uploaded = 0
    for item in store.get_pending_uploads():
        try:
            await object_store.put(item["path"], item["payload"])
        except ProviderUnavailable as e:
            logger.debug("Failed to flush upload %s: %s", item["id"], e)
            store.increment_upload_attempts(item["id"])
            continue
        store.remove_upload(item["id"])
        uploaded += 1
    return uploaded
