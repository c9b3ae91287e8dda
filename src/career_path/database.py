"""
career_path/database.py — SQLite document store
===============================================
Persists every pipeline artefact as a JSON document addressed by
``collection(name).doc(id)``, with an all-or-nothing ``batch()`` commit.
The orchestrator is the only writer and writes exactly once per run.

Design decisions
----------------
- **Single documents table** — every collection lives in one table keyed on
  ``(collection, doc_id)`` with the document as a JSON TEXT column.  Queries
  stay simple and the database stays portable (copy one .db file to migrate).
- **WAL journal mode** — readers are not blocked while a batch commits.
- **One transaction per batch** — ``WriteBatch.commit()`` applies every queued
  write inside a single SQLite transaction; any failure rolls all of it back.

Write sentinels
---------------
  SERVER_TIMESTAMP       replaced with the commit time (ISO-8601, UTC)
  ArrayUnion(values)     appends values missing from the stored array

Collections written by the pipeline
-----------------------------------
  careerPaths/{id}                 CareerPath
  learningPlans/{id}               PersonalizedLearningPlan
  careerCourses/{id}               CareerCourse
  careerCourseLessons/{id}         CourseLesson
  skillAssessmentBanks/{skill_id}  SkillAssessmentBank
  generationTraces/{run_id}        RunTrace
  userCareerProfiles/{user_id}     merged; saved_career_ids array-union
"""

from __future__ import annotations

import dataclasses
import json
import logging
import sqlite3
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


# ─── Sentinels ───────────────────────────────────────────────────────────────

class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class ArrayUnion:
    """Append *values* to the stored array, skipping ones already present."""

    def __init__(self, values: list[Any]):
        self.values = list(values)

    def __repr__(self) -> str:
        return f"ArrayUnion({self.values!r})"


# ─── Serialisation ───────────────────────────────────────────────────────────

def to_document(obj: Any) -> Any:
    """
    Convert *obj* into JSON-safe data.

    Pydantic models, dataclasses, enums, dates and datetimes are converted
    recursively; private dataclass fields (leading underscore) are dropped.
    Sentinels pass through untouched so the store can resolve them.
    """
    if obj is None or isinstance(obj, (str, bool, int, float)):
        return obj
    if isinstance(obj, (_ServerTimestamp, ArrayUnion)):
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: to_document(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
            if not f.name.startswith("_")
        }
    if isinstance(obj, dict):
        return {str(k): to_document(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [to_document(v) for v in obj]
    raise TypeError(f"Cannot store value of type {type(obj).__name__}")


def _resolve(value: Any, existing: Any, now: str, merge: bool) -> Any:
    if isinstance(value, _ServerTimestamp):
        return now
    if isinstance(value, ArrayUnion):
        current = list(existing) if isinstance(existing, list) else []
        for item in to_document(value.values):
            if item not in current:
                current.append(item)
        return current
    if isinstance(value, dict):
        base = existing if (merge and isinstance(existing, dict)) else {}
        out = dict(base)
        for key, sub in value.items():
            out[key] = _resolve(sub, base.get(key), now, merge)
        return out
    if isinstance(value, list):
        return [_resolve(v, None, now, False) for v in value]
    return value


# ─── Store ───────────────────────────────────────────────────────────────────

class DocumentStore:
    """
    SQLite-backed document database.

    Usage::

        store = DocumentStore("career_path_data.db")
        store.collection("careerPaths").doc("career-1").set({"title": "Data Analyst"})
        batch = store.batch()
        batch.set(store.collection("careerCourses").doc("c1"), course)
        batch.commit()
    """

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            from career_path.config import get_settings
            db_path = get_settings().store.db_path
        self.db_path = str(db_path)
        self.init_db()

    def _get_conn(self) -> sqlite3.Connection:
        """Return a connection with row_factory set."""
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def init_db(self) -> None:
        """Create tables if they don't exist."""
        conn = self._get_conn()
        conn.executescript("""
        CREATE TABLE IF NOT EXISTS documents (
            collection  TEXT NOT NULL,
            doc_id      TEXT NOT NULL,
            data_json   TEXT NOT NULL,
            created_at  TEXT DEFAULT (datetime('now')),
            updated_at  TEXT DEFAULT (datetime('now')),
            PRIMARY KEY (collection, doc_id)
        );
        """)
        conn.commit()
        conn.close()

    def collection(self, name: str) -> "CollectionReference":
        return CollectionReference(self, name)

    def batch(self) -> "WriteBatch":
        return WriteBatch(self)

    # ── Low-level helpers (shared by references and batches) ───────────────

    @staticmethod
    def _read(conn: sqlite3.Connection, collection: str, doc_id: str) -> Optional[dict]:
        row = conn.execute(
            "SELECT data_json FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        ).fetchone()
        return json.loads(row["data_json"]) if row else None

    def _write(
        self,
        conn: sqlite3.Connection,
        collection: str,
        doc_id: str,
        data: Any,
        merge: bool,
        now: str,
    ) -> None:
        doc = to_document(data)
        if not isinstance(doc, dict):
            raise TypeError(f"Document {collection}/{doc_id} must be a mapping")
        existing = self._read(conn, collection, doc_id) if merge else None
        resolved = _resolve(doc, existing, now, merge)
        conn.execute(
            """
            INSERT INTO documents (collection, doc_id, data_json)
            VALUES (?, ?, ?)
            ON CONFLICT(collection, doc_id) DO UPDATE SET
                data_json  = excluded.data_json,
                updated_at = datetime('now')
            """,
            (collection, doc_id, json.dumps(resolved)),
        )


class CollectionReference:
    def __init__(self, store: DocumentStore, name: str):
        self._store = store
        self.name   = name

    def doc(self, doc_id: str) -> "DocumentReference":
        return DocumentReference(self._store, self.name, doc_id)

    def list(self) -> list[dict]:
        """All documents in the collection, ordered by id."""
        conn = self._store._get_conn()
        rows = conn.execute(
            "SELECT data_json FROM documents WHERE collection = ? ORDER BY doc_id",
            (self.name,),
        ).fetchall()
        conn.close()
        return [json.loads(r["data_json"]) for r in rows]

    def count(self) -> int:
        conn = self._store._get_conn()
        row = conn.execute(
            "SELECT COUNT(*) AS n FROM documents WHERE collection = ?", (self.name,)
        ).fetchone()
        conn.close()
        return row["n"]


class DocumentReference:
    def __init__(self, store: DocumentStore, collection: str, doc_id: str):
        self._store     = store
        self.collection = collection
        self.id         = doc_id

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.id}"

    def set(self, data: Any, merge: bool = False) -> None:
        conn = self._store._get_conn()
        try:
            with conn:
                self._store._write(conn, self.collection, self.id, data, merge, _now())
        finally:
            conn.close()

    def get(self) -> Optional[dict]:
        conn = self._store._get_conn()
        try:
            return self._store._read(conn, self.collection, self.id)
        finally:
            conn.close()

    def delete(self) -> None:
        conn = self._store._get_conn()
        try:
            with conn:
                conn.execute(
                    "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                    (self.collection, self.id),
                )
        finally:
            conn.close()


class WriteBatch:
    """Queued writes applied in one transaction by ``commit()``."""

    def __init__(self, store: DocumentStore):
        self._store     = store
        self._writes:   list[tuple[DocumentReference, Any, bool]] = []
        self._committed = False

    def __len__(self) -> int:
        return len(self._writes)

    def set(self, ref: DocumentReference, data: Any, merge: bool = False) -> "WriteBatch":
        if self._committed:
            raise RuntimeError("WriteBatch already committed")
        self._writes.append((ref, data, merge))
        return self

    def commit(self) -> int:
        """Apply every queued write atomically; returns the number of writes."""
        if self._committed:
            raise RuntimeError("WriteBatch already committed")
        self._committed = True
        now  = _now()
        conn = self._store._get_conn()
        try:
            with conn:
                for ref, data, merge in self._writes:
                    self._store._write(conn, ref.collection, ref.id, data, merge, now)
        finally:
            conn.close()
        logger.info("Committed batch of %d writes to %s", len(self._writes), self._store.db_path)
        return len(self._writes)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
