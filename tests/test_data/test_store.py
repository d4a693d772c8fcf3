"""Tests for handyman_agent.data.store — DataStore SQLite operations."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from handyman_agent.core.models import ResolutionCacheEntry
from handyman_agent.data.store import DataStore


def _entry(project, barcode="0123456789012", minutes_ago=0, manual_url=None):
    return ResolutionCacheEntry(
        barcode=barcode,
        project=project,
        manual_url=manual_url,
        resolved_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
    )


# ── Config ────────────────────────────────────────────────────────────


class TestConfig:
    """get_config / set_config and schema defaults."""

    def test_default_models(self, temp_db: DataStore):
        assert temp_db.get_config("model") == "claude-3-haiku-20240307"
        assert temp_db.get_config("query-model") == "llama3.1-8b"

    def test_missing_key_returns_none(self, temp_db: DataStore):
        assert temp_db.get_config("nonexistent_key") is None

    def test_set_config_overwrites_existing(self, temp_db: DataStore):
        temp_db.set_config("model", "gpt-4o")
        temp_db.set_config("model", "gemini-2.0-flash")
        assert temp_db.get_config("model") == "gemini-2.0-flash"

    def test_delete_config(self, temp_db: DataStore):
        temp_db.set_config("token-url", "https://t.example.com")
        temp_db.delete_config("token-url")
        assert temp_db.get_config("token-url") is None

    def test_persists_across_reopen(self, tmp_path):
        path = str(tmp_path / "nested" / "data.db")
        store = DataStore(db_path=path)
        store.set_config("search-provider", "exa")
        store.close()

        reopened = DataStore(db_path=path)
        assert reopened.get_config("search-provider") == "exa"
        reopened.close()


# ── Resolution log ────────────────────────────────────────────────────


class TestResolutions:
    def test_log_and_list(self, temp_db: DataStore, sample_project):
        temp_db.log_resolution(
            _entry(sample_project, manual_url="https://e.com/m.pdf")
        )
        rows = temp_db.recent_resolutions()

        assert len(rows) == 1
        row = rows[0]
        assert row["barcode"] == "0123456789012"
        assert row["product_title"] == "Acme Bookshelf"
        assert row["manual_url"] == "https://e.com/m.pdf"
        assert row["source"] == "barcode-pipeline"
        assert row["step_count"] == 3

    def test_newest_first_with_limit(self, temp_db: DataStore, sample_project):
        temp_db.log_resolution(_entry(sample_project, barcode="old", minutes_ago=30))
        temp_db.log_resolution(_entry(sample_project, barcode="new"))
        temp_db.log_resolution(_entry(sample_project, barcode="mid", minutes_ago=10))

        rows = temp_db.recent_resolutions(limit=2)
        assert [r["barcode"] for r in rows] == ["new", "mid"]


# ── Upload queue ──────────────────────────────────────────────────────


class TestUploadQueue:
    def test_queue_and_fetch(self, temp_db: DataStore):
        temp_db.queue_upload("informationlive.json", {"barcode": "1", "n": [1, 2]})
        pending = temp_db.get_pending_uploads()

        assert len(pending) == 1
        assert pending[0]["path"] == "informationlive.json"
        assert pending[0]["payload"] == {"barcode": "1", "n": [1, 2]}
        assert pending[0]["attempts"] == 0

    def test_remove(self, temp_db: DataStore):
        temp_db.queue_upload("a.json", {})
        upload_id = temp_db.get_pending_uploads()[0]["id"]
        temp_db.remove_upload(upload_id)
        assert temp_db.get_pending_uploads() == []

    def test_attempts_limit(self, temp_db: DataStore):
        temp_db.queue_upload("a.json", {})
        upload_id = temp_db.get_pending_uploads()[0]["id"]
        for _ in range(3):
            temp_db.increment_upload_attempts(upload_id)

        assert temp_db.get_pending_uploads(max_attempts=3) == []
        assert temp_db.get_pending_uploads(max_attempts=5)[0]["attempts"] == 3
