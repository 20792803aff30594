"""Storage adapter keeping the corpus keys and their index in memory."""
from __future__ import annotations

import logging
from typing import Sequence

from domain.entities import Payload, SearchHit, SearchResult
from domain.errors import InvalidKeyError
from domain.interfaces import StorageAdapter
from infrastructure.index.shingle_index import ShingleIndex, normalize
from infrastructure.matching.overlap_matcher import OverlapMatcher
from infrastructure.storage.rw_lock import ReadWriteLock

logger = logging.getLogger(__name__)


def _require_key(text: str, what: str = "key") -> str:
    if not isinstance(text, str):
        raise InvalidKeyError(f"{what} must be a string, got {type(text).__name__}")
    key = normalize(text)
    if not key:
        raise InvalidKeyError(f"{what} must not be empty or whitespace")
    return key


def _as_payloads(payloads: Payload | Sequence[Payload]) -> tuple[Payload, ...]:
    if isinstance(payloads, Payload):
        return (payloads,)
    items = tuple(payloads)
    if not items:
        raise InvalidKeyError("At least one payload is required")
    for item in items:
        if not isinstance(item, Payload):
            raise InvalidKeyError(f"Expected Payload, got {type(item).__name__}")
    return items


class InMemoryStorage(StorageAdapter):
    """Key -> payloads map with an incrementally patched shingle index.

    Keys are stored normalized (see ``normalize``). All reads share one
    reader/writer lock; every mutation of the map and the index happens under
    its write side, so readers never see one without the other.
    """

    def __init__(self, ngram_sizes: Sequence[int] | None = None, top_k: int = 5) -> None:
        if top_k < 1:
            raise ValueError(f"top_k must be positive, got {top_k}")
        self._entries: dict[str, tuple[Payload, ...]] = {}
        self._index = ShingleIndex(ngram_sizes)
        self._matcher = OverlapMatcher(self._index)
        self._lock = ReadWriteLock()
        self.top_k = top_k

    @property
    def ngram_sizes(self) -> tuple[int, ...]:
        return self._index.ngram_sizes

    @property
    def index(self) -> ShingleIndex:
        """The underlying index; callers must treat it as read-only."""
        return self._index

    def count(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        with self._lock.read():
            return list(self._entries)

    def get(self, key: str) -> tuple[Payload, ...]:
        normalized = _require_key(key)
        with self._lock.read():
            return self._entries.get(normalized, ())

    def find(self, key: str, *contexts: str) -> tuple[list[Payload], bool]:
        normalized = _require_key(key)
        with self._lock.read():
            stored = self._entries.get(normalized, ())
        payloads = [payload for payload in stored if payload.accepts(contexts)]
        return payloads, bool(payloads)

    def search(self, query: str, *contexts: str, top_k: int | None = None) -> SearchResult:
        _require_key(query, "query")
        limit = self.top_k if top_k is None else top_k

        with self._lock.read():
            entries = self._entries

            def _eligible(key: str) -> bool:
                return any(payload.accepts(contexts) for payload in entries[key])

            ranking = self._matcher.rank(query, top_k=limit, accept=_eligible)
            hits = [
                SearchHit(
                    key=match.key,
                    score=match.score,
                    payloads=[payload for payload in entries[match.key] if payload.accepts(contexts)],
                )
                for match in ranking.matches
            ]
        return SearchResult(query=query, hits=hits, no_match=ranking.no_match)

    def update(self, key: str, payloads: Payload | Sequence[Payload]) -> None:
        normalized = _require_key(key)
        items = _as_payloads(payloads)
        with self._lock.write():
            if normalized not in self._entries:
                self._index.add(normalized)
            self._entries[normalized] = items

    def rename(self, old_key: str, new_key: str, payloads: Payload | Sequence[Payload]) -> None:
        old = _require_key(old_key)
        new = _require_key(new_key)
        items = _as_payloads(payloads)
        with self._lock.write():
            if old != new and old in self._entries:
                del self._entries[old]
                self._index.remove(old)
            if new not in self._entries:
                self._index.add(new)
            self._entries[new] = items

    def remove(self, key: str) -> None:
        normalized = _require_key(key)
        with self._lock.write():
            if self._entries.pop(normalized, None) is not None:
                self._index.remove(normalized)

    def build_index(self) -> None:
        with self._lock.write():
            self._index.rebuild(self._entries)
            logger.debug(
                "Rebuilt index: %d keys, %d shingles", len(self._index), self._index.shingle_count
            )

    def sync(self) -> None:
        """Nothing durable to write for the in-memory variant."""

    def snapshot(self) -> dict[str, tuple[Payload, ...]]:
        """Copy the key -> payloads map under the read lock."""
        with self._lock.read():
            return dict(self._entries)

    def load(self, entries: dict[str, Sequence[Payload]]) -> None:
        """Replace the whole map and rebuild the index in one write."""
        prepared = {_require_key(key): _as_payloads(payloads) for key, payloads in entries.items()}
        with self._lock.write():
            self._entries = prepared
            self._index.rebuild(self._entries)


__all__ = ["InMemoryStorage"]
