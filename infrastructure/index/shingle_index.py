"""Inverted character n-gram index over corpus keys."""
from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Sequence

_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Case-fold, collapse whitespace runs and strip."""
    return _WHITESPACE.sub(" ", text).strip().casefold()


@dataclass(frozen=True, slots=True)
class Candidate:
    """A key sharing at least one shingle with a query."""

    key: str
    overlap: int
    length: int
    sequence: int


class ShingleIndex:
    """Maps shingles to the keys containing them.

    Every key is decomposed into character n-grams for each width in
    ``ngram_sizes``. Postings hold the number of times a shingle occurs in a
    key, and ``_lengths`` the total shingle count per key, which the matcher
    uses to normalize scores. The structure is always exactly the one
    obtained by adding the current key set; callers serialize access.
    """

    def __init__(self, ngram_sizes: Sequence[int] | None = None) -> None:
        sizes = (2, 3) if ngram_sizes is None else tuple(ngram_sizes)
        if not sizes or any(n < 1 for n in sizes):
            raise ValueError(f"Invalid n-gram sizes: {sizes!r}")
        self.ngram_sizes = tuple(sorted(set(sizes)))
        self._postings: dict[str, dict[str, int]] = {}
        self._lengths: dict[str, int] = {}
        self._sequence: dict[str, int] = {}
        self._next_sequence = 0

    def __len__(self) -> int:
        return len(self._lengths)

    def __contains__(self, key: object) -> bool:
        return key in self._lengths

    @property
    def shingle_count(self) -> int:
        return len(self._postings)

    def shingles(self, text: str) -> Counter[str]:
        clean = normalize(text)
        if not clean:
            return Counter()
        grams: Counter[str] = Counter()
        for n in self.ngram_sizes:
            grams.update(
                clean[i : i + n]
                for i in range(max(len(clean) - n + 1, 0))
                if clean[i : i + n].strip()
            )
        return grams or Counter([clean])

    def add(self, key: str) -> None:
        if key in self._lengths:
            return
        grams = self.shingles(key)
        if not grams:
            raise ValueError("Cannot index an empty key.")
        for gram, weight in grams.items():
            self._postings.setdefault(gram, {})[key] = weight
        self._lengths[key] = sum(grams.values())
        self._sequence[key] = self._next_sequence
        self._next_sequence += 1

    def remove(self, key: str) -> None:
        if key not in self._lengths:
            return
        for gram in self.shingles(key):
            keys = self._postings.get(gram)
            if keys is None:
                continue
            keys.pop(key, None)
            if not keys:
                del self._postings[gram]
        del self._lengths[key]
        del self._sequence[key]

    def rebuild(self, keys: Iterable[str]) -> None:
        self._postings = {}
        self._lengths = {}
        self._sequence = {}
        self._next_sequence = 0
        for key in keys:
            self.add(key)

    def candidates_for(self, query: str) -> list[Candidate]:
        query_grams = self.shingles(query)
        overlaps: dict[str, int] = {}
        for gram, count in query_grams.items():
            for key, weight in self._postings.get(gram, {}).items():
                overlaps[key] = overlaps.get(key, 0) + min(count, weight)
        return [
            Candidate(
                key=key,
                overlap=overlap,
                length=self._lengths[key],
                sequence=self._sequence[key],
            )
            for key, overlap in overlaps.items()
        ]

    def postings(self) -> dict[str, dict[str, int]]:
        """Return a copy of the shingle -> {key: weight} map."""
        return {gram: dict(keys) for gram, keys in self._postings.items()}

    def lengths(self) -> dict[str, int]:
        return dict(self._lengths)


__all__ = ["Candidate", "ShingleIndex", "normalize"]
