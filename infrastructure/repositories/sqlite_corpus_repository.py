"""SQLite repository for project corpus rows."""
from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from domain.entities import CORPUS_QTYPE, CorpusData, CorpusEntry
from domain.interfaces import CorpusRepository

_COLUMNS = (
    "id, class, project, question, answer, qtype, context, contextual, data, "
    "accept_count, reject_count, created_at, updated_at"
)


class SqliteCorpusRepository(CorpusRepository):
    """Stores corpus rows in a lightweight SQLite database."""

    def __init__(self, db_path: str | Path = "chatbot.db") -> None:
        self._db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS corpus (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    class TEXT NOT NULL DEFAULT '',
                    project TEXT NOT NULL,
                    question TEXT NOT NULL,
                    answer TEXT NOT NULL,
                    qtype INTEGER NOT NULL DEFAULT 1,
                    context TEXT NOT NULL DEFAULT '',
                    contextual INTEGER NOT NULL DEFAULT 0,
                    data TEXT NOT NULL DEFAULT '',
                    accept_count INTEGER NOT NULL DEFAULT 0,
                    reject_count INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT,
                    updated_at TEXT
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_corpus_project ON corpus (project, qtype)")

    def add(self, entry: CorpusEntry) -> int:
        now = datetime.utcnow().isoformat()
        with self._connect() as conn:
            existing_id = self._existing_id(conn, entry)
            if existing_id is None:
                cursor = conn.execute(
                    """
                    INSERT INTO corpus (
                        class, project, question, answer, qtype, context, contextual, data,
                        accept_count, reject_count, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        entry.class_,
                        entry.project,
                        entry.question,
                        entry.answer,
                        entry.qtype,
                        entry.context,
                        int(entry.contextual),
                        json.dumps(entry.data.to_dict()),
                        entry.accept_count,
                        entry.reject_count,
                        now,
                        now,
                    ),
                )
                entry.id = int(cursor.lastrowid)
            else:
                conn.execute(
                    """
                    UPDATE corpus SET
                        class = ?, project = ?, question = ?, answer = ?, qtype = ?,
                        context = ?, contextual = ?, data = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        entry.class_,
                        entry.project,
                        entry.question,
                        entry.answer,
                        entry.qtype,
                        entry.context,
                        int(entry.contextual),
                        json.dumps(entry.data.to_dict()),
                        now,
                        existing_id,
                    ),
                )
                entry.id = existing_id
        return entry.id

    @staticmethod
    def _existing_id(conn: sqlite3.Connection, entry: CorpusEntry) -> int | None:
        if entry.id:
            row = conn.execute("SELECT id FROM corpus WHERE id = ?", (entry.id,)).fetchone()
        else:
            row = conn.execute(
                "SELECT id FROM corpus WHERE project = ? AND question = ? AND class = ?",
                (entry.project, entry.question, entry.class_),
            ).fetchone()
        return int(row[0]) if row is not None else None

    def get(self, corpus_id: int) -> CorpusEntry | None:
        with self._connect() as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM corpus WHERE id = ?", (corpus_id,)).fetchone()
        return self._row_to_entry(row) if row is not None else None

    def list(
        self,
        project: str = "",
        *,
        question_like: str = "",
        start: int = 0,
        limit: int = 100,
    ) -> list[CorpusEntry]:
        clauses: list[str] = []
        params: list[object] = []
        if project:
            clauses.append("project = ?")
            params.append(project)
        if question_like:
            clauses.append("question LIKE ?")
            params.append(f"%{question_like}%")
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM corpus {where} ORDER BY id LIMIT ? OFFSET ?",
                (*params, limit, start),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def list_for_training(self, project: str) -> list[CorpusEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM corpus WHERE project = ? AND qtype = ? ORDER BY id",
                (project, CORPUS_QTYPE),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def remove(self, corpus_id: int) -> CorpusEntry | None:
        entry = self.get(corpus_id)
        if entry is None:
            return None
        with self._connect() as conn:
            conn.execute("DELETE FROM corpus WHERE id = ?", (corpus_id,))
        return entry

    def remove_project(self, project: str) -> int:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM corpus WHERE project = ?", (project,))
        return cursor.rowcount

    def record_feedback(self, corpus_id: int, accepted: bool) -> None:
        if corpus_id <= 0:
            raise ValueError(f"Invalid corpus id {corpus_id}")
        column = "accept_count" if accepted else "reject_count"
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE corpus SET {column} = {column} + 1 WHERE id = ?",
                (corpus_id,),
            )
        if cursor.rowcount == 0:
            raise KeyError(corpus_id)

    @staticmethod
    def _row_to_entry(row: tuple) -> CorpusEntry:
        created_at = datetime.fromisoformat(row[11]) if row[11] else None
        updated_at = datetime.fromisoformat(row[12]) if row[12] else None
        return CorpusEntry(
            id=row[0],
            class_=row[1],
            project=row[2],
            question=row[3],
            answer=row[4],
            qtype=row[5],
            context=row[6] or "",
            contextual=bool(row[7]),
            data=CorpusData.from_dict(json.loads(row[8]) if row[8] else None),
            accept_count=row[9],
            reject_count=row[10],
            created_at=created_at,
            updated_at=updated_at,
        )


__all__ = ["SqliteCorpusRepository"]
