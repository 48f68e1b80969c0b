"""
SQLite-backed storage for the local data service.

Schema
──────
table: topics
  id          INTEGER PRIMARY KEY AUTOINCREMENT
  name        TEXT NOT NULL
  explanation TEXT NOT NULL DEFAULT ''
  deleted     INTEGER NOT NULL DEFAULT 0   (soft-delete flag)
  created_at  TEXT NOT NULL  (ISO-8601 UTC)
  updated_at  TEXT NOT NULL  (ISO-8601 UTC)

table: insights
  id          INTEGER PRIMARY KEY
  title       TEXT NOT NULL
  description TEXT NOT NULL
  thumbnail   TEXT NOT NULL
  video_url   TEXT NOT NULL
  youtube_url TEXT NOT NULL
"""

from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Iterable
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from core.models import Insight, Topic, TopicDraft

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "insights.db"


def _db_path() -> Path:
    """Return the database file path, honouring a DB_PATH env var if set."""
    env = os.getenv("DB_PATH")
    return Path(env) if env else DEFAULT_DB_PATH


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@contextmanager
def _connect():
    """Yield a connected sqlite3.Connection, creating the file/dir if needed."""
    path = _db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db() -> None:
    """Create the topics and insights tables if they don't exist yet."""
    with _connect() as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS topics (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                name        TEXT NOT NULL,
                explanation TEXT NOT NULL DEFAULT '',
                deleted     INTEGER NOT NULL DEFAULT 0,
                created_at  TEXT NOT NULL,
                updated_at  TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS insights (
                id          INTEGER PRIMARY KEY,
                title       TEXT NOT NULL,
                description TEXT NOT NULL,
                thumbnail   TEXT NOT NULL,
                video_url   TEXT NOT NULL,
                youtube_url TEXT NOT NULL
            )
            """
        )
    logger.info("Insight DB initialised at %s", _db_path())


# ── Topics ─────────────────────────────────────────────────────────────────


def insert_topics(drafts: Iterable[TopicDraft]) -> list[int]:
    """Insert a batch of topics in one transaction.

    Args:
        drafts: The topic drafts to create.

    Returns:
        The new row IDs, in input order.
    """
    now = _now()
    ids: list[int] = []
    with _connect() as conn:
        for draft in drafts:
            cursor = conn.execute(
                "INSERT INTO topics (name, explanation, deleted, created_at, updated_at) "
                "VALUES (?, ?, 0, ?, ?)",
                (draft.name.strip(), draft.explanation, now, now),
            )
            ids.append(cursor.lastrowid)

    logger.info("Inserted topics ids=%s", ids)
    return ids


def update_topic(topic_id: int, patch: TopicDraft) -> bool:
    """Overwrite the editable fields of a live topic.

    Returns:
        True if a row was updated, False if the topic is missing or deleted.
    """
    with _connect() as conn:
        cursor = conn.execute(
            "UPDATE topics SET name = ?, explanation = ?, updated_at = ? "
            "WHERE id = ? AND deleted = 0",
            (patch.name.strip(), patch.explanation, _now(), topic_id),
        )
    return cursor.rowcount > 0


def soft_delete_topic(topic_id: int) -> bool:
    """Flag a topic as deleted without removing its row.

    Returns:
        True if a live topic was flagged, False if not found or already deleted.
    """
    with _connect() as conn:
        cursor = conn.execute(
            "UPDATE topics SET deleted = 1, updated_at = ? WHERE id = ? AND deleted = 0",
            (_now(), topic_id),
        )
    deleted = cursor.rowcount > 0
    if deleted:
        logger.info("Soft-deleted topic id=%d", topic_id)
    return deleted


def list_topics() -> list[Topic]:
    """Return all live (not soft-deleted) topics, oldest first."""
    with _connect() as conn:
        rows = conn.execute(
            "SELECT id, name, explanation FROM topics WHERE deleted = 0 ORDER BY id"
        ).fetchall()
    return [
        Topic(id=row["id"], name=row["name"], explanation=row["explanation"])
        for row in rows
    ]


def count_all_topics() -> int:
    """Count every topic row, soft-deleted ones included."""
    with _connect() as conn:
        return conn.execute("SELECT COUNT(*) FROM topics").fetchone()[0]


# ── Insights ───────────────────────────────────────────────────────────────


def upsert_insights(insights: Iterable[Insight]) -> int:
    """Insert or replace insight records by id. Returns the number written."""
    count = 0
    with _connect() as conn:
        for insight in insights:
            conn.execute(
                "INSERT OR REPLACE INTO insights "
                "(id, title, description, thumbnail, video_url, youtube_url) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    insight.id,
                    insight.title,
                    insight.description,
                    insight.thumbnail,
                    insight.video_url,
                    insight.youtube_url,
                ),
            )
            count += 1
    logger.info("Upserted %d insights", count)
    return count


def list_insights() -> list[Insight]:
    """Return every insight ordered by id, skipping rows that fail validation."""
    with _connect() as conn:
        rows = conn.execute(
            "SELECT id, title, description, thumbnail, video_url, youtube_url "
            "FROM insights ORDER BY id"
        ).fetchall()

    insights: list[Insight] = []
    for row in rows:
        try:
            insights.append(Insight.model_validate(dict(row)))
        except Exception as exc:
            logger.warning("Skipping corrupt insight id=%s: %s", row["id"], exc)
    return insights
