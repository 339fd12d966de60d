"""
db.py — SQLite persistence for summaries and their share history

This module provides:
  - Connection helper that commits/rolls back and closes
  - Idempotent schema creation
  - SummaryStore: CRUD, pagination, counts and share aggregates
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

logger = logging.getLogger("app.store")

_SUMMARY_COLUMNS = (
    "id, title, original_text, custom_prompt, generated_summary, edited_summary, "
    "tags, source, is_shared, created_at, updated_at"
)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def new_summary_id() -> str:
    """24 lowercase hex characters, the same shape clients validate against."""
    return uuid.uuid4().hex[:24]


@contextmanager
def get_connection(db_path: Path) -> Iterator[sqlite3.Connection]:
    """
    Open a SQLite connection with foreign keys enabled.
    Commits on success, rolls back on error, always closes.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA foreign_keys = ON;")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _row_to_summary(r: Sequence[Any]) -> Dict[str, Any]:
    edited = r[5]
    return {
        "id": r[0],
        "title": r[1],
        "original_text": r[2],
        "custom_prompt": r[3],
        "generated_summary": r[4],
        "edited_summary": edited,
        "final_summary": edited or r[4],
        "tags": json.loads(r[6] or "[]"),
        "source": r[7],
        "is_shared": bool(r[8]),
        "created_at": r[9],
        "updated_at": r[10],
    }


def clean_tags(tags: Optional[List[str]]) -> List[str]:
    return [t.strip() for t in (tags or []) if t and t.strip()]


class SummaryStore:
    """Summary records plus per-recipient share entries."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path).expanduser().resolve()

    def initialize(self) -> None:
        """Create tables if they don't exist. Safe to call on every startup."""
        with get_connection(self.db_path) as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS summaries (
                    id                TEXT PRIMARY KEY,
                    title             TEXT NOT NULL,
                    original_text     TEXT NOT NULL,
                    custom_prompt     TEXT NOT NULL,
                    generated_summary TEXT NOT NULL,
                    edited_summary    TEXT,
                    tags              TEXT NOT NULL DEFAULT '[]',  -- JSON array
                    source            TEXT NOT NULL DEFAULT 'groq', -- groq|fallback
                    is_shared         INTEGER NOT NULL DEFAULT 0,
                    created_at        TEXT NOT NULL,
                    updated_at        TEXT NOT NULL
                );
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS summary_shares (
                    id         INTEGER PRIMARY KEY AUTOINCREMENT,
                    summary_id TEXT NOT NULL,
                    email      TEXT NOT NULL,
                    shared_at  TEXT NOT NULL,
                    FOREIGN KEY (summary_id) REFERENCES summaries(id) ON DELETE CASCADE
                );
                """
            )
            cur.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_summaries_updated_at
                ON summaries(updated_at DESC);
                """
            )
            cur.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_summary_shares_summary_id
                ON summary_shares(summary_id, id);
                """
            )

    # ------------------------------ CRUD ------------------------------
    def create(
        self,
        *,
        title: str,
        original_text: str,
        custom_prompt: str,
        generated_summary: str,
        tags: Optional[List[str]] = None,
        source: str = "groq",
    ) -> Dict[str, Any]:
        summary_id = new_summary_id()
        now = utc_now_iso()
        with get_connection(self.db_path) as conn:
            conn.execute(
                f"""
                INSERT INTO summaries ({_SUMMARY_COLUMNS})
                VALUES (?, ?, ?, ?, ?, NULL, ?, ?, 0, ?, ?)
                """,
                (
                    summary_id,
                    title,
                    original_text,
                    custom_prompt,
                    generated_summary,
                    json.dumps(clean_tags(tags), ensure_ascii=False),
                    source,
                    now,
                    now,
                ),
            )
        logger.info(f"summary created id={summary_id} source={source}")
        return self.get(summary_id)  # type: ignore[return-value]

    def get(self, summary_id: str) -> Optional[Dict[str, Any]]:
        with get_connection(self.db_path) as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_SUMMARY_COLUMNS} FROM summaries WHERE id = ?", (summary_id,))
            row = cur.fetchone()
        return _row_to_summary(row) if row else None

    def update(
        self,
        summary_id: str,
        *,
        edited_summary: str,
        title: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Optional[Dict[str, Any]]:
        sets = ["edited_summary = ?", "updated_at = ?"]
        params: List[Any] = [edited_summary, utc_now_iso()]
        if title:
            sets.append("title = ?")
            params.append(title)
        if tags is not None:
            sets.append("tags = ?")
            params.append(json.dumps(clean_tags(tags), ensure_ascii=False))
        params.append(summary_id)
        with get_connection(self.db_path) as conn:
            cur = conn.cursor()
            cur.execute(f"UPDATE summaries SET {', '.join(sets)} WHERE id = ?", params)
            updated = cur.rowcount
        if not updated:
            return None
        logger.info(f"summary updated id={summary_id}")
        return self.get(summary_id)

    def delete(self, summary_id: str) -> bool:
        with get_connection(self.db_path) as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM summaries WHERE id = ?", (summary_id,))
            deleted = cur.rowcount
        if deleted:
            logger.info(f"summary deleted id={summary_id}")
        return bool(deleted)

    def list_page(self, page: int = 1, limit: int = 10) -> List[Dict[str, Any]]:
        """Return one page of summaries, most recently updated first.

        Only the light fields are included; fetch a single record for the texts.
        """
        offset = (max(page, 1) - 1) * limit
        with get_connection(self.db_path) as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT id, title, tags, is_shared, created_at, updated_at
                FROM summaries
                ORDER BY updated_at DESC, rowid DESC
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = cur.fetchall()
        return [
            {
                "id": r[0],
                "title": r[1],
                "tags": json.loads(r[2] or "[]"),
                "is_shared": bool(r[3]),
                "created_at": r[4],
                "updated_at": r[5],
            }
            for r in rows
        ]

    def count(self, shared: Optional[bool] = None) -> int:
        with get_connection(self.db_path) as conn:
            cur = conn.cursor()
            if shared is None:
                cur.execute("SELECT COUNT(1) FROM summaries")
            else:
                cur.execute("SELECT COUNT(1) FROM summaries WHERE is_shared = ?", (1 if shared else 0,))
            return int(cur.fetchone()[0])

    # ----------------------------- Sharing ----------------------------
    def record_shares(self, summary_id: str, emails: List[str]) -> List[Dict[str, Any]]:
        """Append one share entry per address and flag the summary as shared."""
        shared_at = utc_now_iso()
        with get_connection(self.db_path) as conn:
            cur = conn.cursor()
            cur.execute("SELECT 1 FROM summaries WHERE id = ?", (summary_id,))
            if cur.fetchone() is None:
                raise ValueError(f"Summary {summary_id} does not exist")
            cur.executemany(
                "INSERT INTO summary_shares (summary_id, email, shared_at) VALUES (?, ?, ?)",
                [(summary_id, e, shared_at) for e in emails],
            )
            cur.execute(
                "UPDATE summaries SET is_shared = 1, updated_at = ? WHERE id = ?",
                (shared_at, summary_id),
            )
        logger.info(f"summary shared id={summary_id} recipients={len(emails)}")
        return [{"email": e, "shared_at": shared_at} for e in emails]

    def share_history(self, summary_id: str) -> List[Dict[str, Any]]:
        with get_connection(self.db_path) as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT email, shared_at
                FROM summary_shares
                WHERE summary_id = ?
                ORDER BY id ASC
                """,
                (summary_id,),
            )
            return [{"email": r[0], "shared_at": r[1]} for r in cur.fetchall()]

    def share_totals(self) -> Tuple[int, int]:
        """(total share entries, distinct recipient addresses) across shared summaries."""
        with get_connection(self.db_path) as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT COUNT(1), COUNT(DISTINCT s.email)
                FROM summary_shares AS s
                JOIN summaries AS m ON m.id = s.summary_id
                WHERE m.is_shared = 1
                """
            )
            row = cur.fetchone()
        return int(row[0] or 0), int(row[1] or 0)
