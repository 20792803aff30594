"""Logic adapter answering with the closest indexed questions."""
from __future__ import annotations

from domain.entities import Answer
from domain.interfaces import LogicAdapter, StorageAdapter


class ClosestMatch(LogicAdapter):
    """Ranks stored questions against the utterance and returns their payloads."""

    def __init__(self, storage: StorageAdapter, top_k: int = 5) -> None:
        self._storage = storage
        self.top_k = top_k

    def can_process(self, text: str) -> bool:
        return bool(text and text.strip())

    def process(self, text: str, *contexts: str) -> list[Answer]:
        if not self.can_process(text):
            return []
        result = self._storage.search(text, *contexts, top_k=self.top_k)
        answers: list[Answer] = []
        for hit in result.hits:
            for payload in hit.payloads:
                answers.append(Answer(content=payload.encode(), confidence=hit.score, payload=payload))
        return answers


__all__ = ["ClosestMatch"]
