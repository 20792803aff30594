"""Abstract interfaces for the chatbot matching engine."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from domain.entities import Answer, CorpusEntry, Payload, Project, SearchResult


class StorageAdapter(ABC):
    """Owns the key -> payloads mapping and the index built over its keys."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of distinct keys."""

    @abstractmethod
    def keys(self) -> list[str]:
        """Return the stored keys in insertion order."""

    @abstractmethod
    def get(self, key: str) -> tuple[Payload, ...]:
        """Return every payload stored under a key, ignoring context."""

    @abstractmethod
    def find(self, key: str, *contexts: str) -> tuple[list[Payload], bool]:
        """Look up a key exactly, keeping payloads eligible for ``contexts``."""

    @abstractmethod
    def search(self, query: str, *contexts: str, top_k: int | None = None) -> SearchResult:
        """Rank keys against free text and resolve them to payloads."""

    @abstractmethod
    def update(self, key: str, payloads: Payload | Sequence[Payload]) -> None:
        """Insert or replace the payloads stored under a key."""

    @abstractmethod
    def rename(self, old_key: str, new_key: str, payloads: Payload | Sequence[Payload]) -> None:
        """Move payloads to a new key text."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key; missing keys are ignored."""

    @abstractmethod
    def build_index(self) -> None:
        """Rebuild the index from the full key set."""

    @abstractmethod
    def sync(self) -> None:
        """Persist the current mapping, if the variant is durable."""


class LogicAdapter(ABC):
    """Turns an utterance into scored answers."""

    @abstractmethod
    def can_process(self, text: str) -> bool:
        """Return True if the adapter can answer ``text``."""

    @abstractmethod
    def process(self, text: str, *contexts: str) -> list[Answer]:
        """Return answers ordered by descending confidence."""


class CorpusRepository(ABC):
    """Persists corpus rows."""

    @abstractmethod
    def add(self, entry: CorpusEntry) -> int:
        """Insert or update a row and return its id."""

    @abstractmethod
    def get(self, corpus_id: int) -> CorpusEntry | None:
        """Retrieve a row by id."""

    @abstractmethod
    def list(
        self,
        project: str = "",
        *,
        question_like: str = "",
        start: int = 0,
        limit: int = 100,
    ) -> list[CorpusEntry]:
        """Return a page of rows."""

    @abstractmethod
    def list_for_training(self, project: str) -> list[CorpusEntry]:
        """Return every question/answer row of a project."""

    @abstractmethod
    def remove(self, corpus_id: int) -> CorpusEntry | None:
        """Delete a row, returning it if it existed."""

    @abstractmethod
    def remove_project(self, project: str) -> int:
        """Delete every row of a project and return how many were removed."""

    @abstractmethod
    def record_feedback(self, corpus_id: int, accepted: bool) -> None:
        """Increment the accept or reject counter of a row."""


class ProjectRepository(ABC):
    """Persists the project registry."""

    @abstractmethod
    def add(self, project: Project) -> Project:
        """Register a new project."""

    @abstractmethod
    def get(self, name: str) -> Project | None:
        """Retrieve a project by name."""

    @abstractmethod
    def list(self) -> list[Project]:
        """Return all projects."""

    @abstractmethod
    def remove(self, name: str) -> bool:
        """Delete a project; return False if it did not exist."""


__all__ = [
    "StorageAdapter",
    "LogicAdapter",
    "CorpusRepository",
    "ProjectRepository",
]
