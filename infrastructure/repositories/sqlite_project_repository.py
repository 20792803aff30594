"""SQLite repository for the project registry."""
from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from domain.entities import Project
from domain.interfaces import ProjectRepository


class SqliteProjectRepository(ProjectRepository):
    """Stores project names and their JSON config."""

    def __init__(self, db_path: str | Path = "chatbot.db") -> None:
        self._db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS projects (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    config TEXT NOT NULL DEFAULT '{}'
                )
                """
            )

    def add(self, project: Project) -> Project:
        if not project.name.strip():
            raise ValueError("Project name must not be empty")
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO projects (name, config) VALUES (?, ?)",
                    (project.name, json.dumps(project.config)),
                )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"project with name '{project.name}' already exists") from exc
        project.id = int(cursor.lastrowid)
        return project

    def get(self, name: str) -> Project | None:
        with self._connect() as conn:
            row = conn.execute("SELECT id, name, config FROM projects WHERE name = ?", (name,)).fetchone()
        if row is None:
            return None
        return Project(id=row[0], name=row[1], config=json.loads(row[2] or "{}"))

    def list(self) -> list[Project]:
        with self._connect() as conn:
            rows = conn.execute("SELECT id, name, config FROM projects ORDER BY id").fetchall()
        return [Project(id=row[0], name=row[1], config=json.loads(row[2] or "{}")) for row in rows]

    def remove(self, name: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM projects WHERE name = ?", (name,))
        return cursor.rowcount > 0


__all__ = ["SqliteProjectRepository"]
