# src/storage/session_store.py

"""SQLite-backed key-value store for per-session research artifacts."""

import json
import logging
import sqlite3
import threading
import time
import uuid
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from src.config.settings import Settings

logger = logging.getLogger("import_scout.sessions")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS assessments (
    id           TEXT    PRIMARY KEY,
    session_id   TEXT    UNIQUE NOT NULL,
    context_json TEXT    NOT NULL,
    report_json  TEXT    NOT NULL,
    created_at   INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS session_data (
    session_id TEXT    NOT NULL,
    data_type  TEXT    NOT NULL,
    data_json  TEXT    NOT NULL,
    created_at INTEGER NOT NULL,
    PRIMARY KEY (session_id, data_type)
);
"""


class SessionDataType(StrEnum):
    """Closed set of artifact kinds stored per session."""

    PRODUCT_METADATA = "product_metadata"
    SOURCING = "sourcing"
    TRENDS = "trends"
    REGULATION = "regulation"
    IMPOSITIVE = "impositive"
    MARKET = "market"


@dataclass
class StoredAssessment:
    """A persisted request context + opportunity report pair."""

    id: str
    session_id: str
    context: dict[str, Any]
    report: dict[str, Any]
    created_at: int


def _to_jsonable(value: Any) -> Any:
    """Pydantic models are dumped in JSON mode; anything else as-is."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionStore:
    """Session-keyed artifact store.

    Writes to the same ``(session_id, data_type)`` key are last-write-
    wins; there is no optimistic locking.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.SESSION_DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._lock = threading.Lock()
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug("SessionStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Per-type artifacts ───────────────────────────────

    def put(
        self,
        session_id: str,
        data_type: SessionDataType,
        value: Any,
    ) -> None:
        """Store *value* under ``(session_id, data_type)``."""
        payload = json.dumps(_to_jsonable(value), ensure_ascii=False)
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO session_data "
                "(session_id, data_type, data_json, created_at) "
                "VALUES (?, ?, ?, ?)",
                (session_id, str(data_type), payload, _now_ms()),
            )
            self._conn.commit()
        logger.debug("Stored %s for session %s", data_type, session_id)

    def get(
        self,
        session_id: str,
        data_type: SessionDataType,
    ) -> Any | None:
        """Return the stored value, or ``None`` when absent."""
        with self._lock:
            row = self._conn.execute(
                "SELECT data_json FROM session_data "
                "WHERE session_id = ? AND data_type = ?",
                (session_id, str(data_type)),
            ).fetchone()
        return json.loads(row[0]) if row else None

    def get_all(self, session_id: str) -> dict[str, Any]:
        """Return every stored artifact for a session, keyed by type."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT data_type, data_json FROM session_data "
                "WHERE session_id = ?",
                (session_id,),
            ).fetchall()
        return {r[0]: json.loads(r[1]) for r in rows}

    # ── Final assessment ─────────────────────────────────

    def save_assessment(
        self,
        session_id: str,
        context: Any,
        report: Any,
    ) -> str:
        """Upsert the final context/report pair for a session.

        Returns the id assigned to the new record.
        """
        record_id = str(uuid.uuid4())
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO assessments "
                "(id, session_id, context_json, report_json, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    record_id,
                    session_id,
                    json.dumps(_to_jsonable(context), ensure_ascii=False),
                    json.dumps(_to_jsonable(report), ensure_ascii=False),
                    _now_ms(),
                ),
            )
            self._conn.commit()
        logger.info("Saved assessment %s for session %s", record_id, session_id)
        return record_id

    def get_assessment(
        self, session_id: str,
    ) -> StoredAssessment | None:
        """Return the stored assessment for a session, if any."""
        with self._lock:
            row = self._conn.execute(
                "SELECT id, session_id, context_json, report_json, "
                "created_at FROM assessments WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if row is None:
            return None
        return StoredAssessment(
            id=row[0],
            session_id=row[1],
            context=json.loads(row[2]),
            report=json.loads(row[3]),
            created_at=row[4],
        )
