"""Local data store — SQLite at ~/.handyman-agent/data.db."""

from __future__ import annotations

import json
import os
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from handyman_agent.core.models import ResolutionCacheEntry


_DEFAULT_DB_PATH = os.path.join(
    str(Path.home()), ".handyman-agent", "data.db"
)

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS resolutions (
    id TEXT PRIMARY KEY,
    barcode TEXT NOT NULL,
    product_title TEXT NOT NULL,
    manual_url TEXT,
    source TEXT NOT NULL,
    step_count INTEGER NOT NULL,
    resolved_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS upload_queue (
    id TEXT PRIMARY KEY,
    path TEXT NOT NULL,
    payload TEXT NOT NULL,
    created_at TEXT NOT NULL,
    attempts INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

INSERT OR IGNORE INTO config (key, value) VALUES ('model', 'claude-3-haiku-20240307');
INSERT OR IGNORE INTO config (key, value) VALUES ('query-model', 'llama3.1-8b');
"""


class DataStore:
    """Local SQLite data store."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or _DEFAULT_DB_PATH
        os.makedirs(os.path.dirname(self.db_path), exist_ok=True)
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_db(self) -> None:
        conn = self._get_conn()
        conn.executescript(_SCHEMA)
        conn.commit()

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    # ── Config ───────────────────────────────────────────────────────

    def get_config(self, key: str) -> Optional[str]:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT value FROM config WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set_config(self, key: str, value: str) -> None:
        conn = self._get_conn()
        conn.execute(
            "INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
            (key, value),
        )
        conn.commit()

    def delete_config(self, key: str) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM config WHERE key = ?", (key,))
        conn.commit()

    # ── Resolution log ───────────────────────────────────────────────

    def log_resolution(self, entry: ResolutionCacheEntry) -> None:
        conn = self._get_conn()
        conn.execute(
            """INSERT INTO resolutions
               (id, barcode, product_title, manual_url, source, step_count,
                resolved_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                str(uuid.uuid4()),
                entry.barcode,
                entry.project.name,
                entry.manual_url,
                entry.project.source.value,
                entry.project.total_steps,
                entry.resolved_at.isoformat(),
            ),
        )
        conn.commit()

    def recent_resolutions(self, limit: int = 20) -> list[dict]:
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM resolutions ORDER BY resolved_at DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [dict(row) for row in rows]

    # ── Upload Queue ─────────────────────────────────────────────────

    def queue_upload(self, path: str, payload: dict[str, Any]) -> None:
        conn = self._get_conn()
        conn.execute(
            """INSERT INTO upload_queue (id, path, payload, created_at)
               VALUES (?, ?, ?, ?)""",
            (
                str(uuid.uuid4()),
                path,
                json.dumps(payload),
                datetime.now().isoformat(),
            ),
        )
        conn.commit()

    def get_pending_uploads(self, max_attempts: int = 5) -> list[dict]:
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM upload_queue WHERE attempts < ? ORDER BY created_at",
            (max_attempts,),
        ).fetchall()
        result = []
        for row in rows:
            d = dict(row)
            d["payload"] = json.loads(d["payload"])
            result.append(d)
        return result

    def remove_upload(self, upload_id: str) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM upload_queue WHERE id = ?", (upload_id,))
        conn.commit()

    def increment_upload_attempts(self, upload_id: str) -> None:
        conn = self._get_conn()
        conn.execute(
            "UPDATE upload_queue SET attempts = attempts + 1 WHERE id = ?",
            (upload_id,),
        )
        conn.commit()
