"""Ranks indexed keys by weighted shingle overlap with a query."""
from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import Callable

from infrastructure.index.shingle_index import Candidate, ShingleIndex


@dataclass(frozen=True, slots=True)
class ScoredKey:
    key: str
    score: float


@dataclass(slots=True)
class Ranking:
    """Top-K keys for a query, best first."""

    matches: list[ScoredKey] = field(default_factory=list)
    candidate_count: int = 0

    @property
    def no_match(self) -> bool:
        return self.candidate_count == 0


class OverlapMatcher:
    """Scores candidates with a weighted Jaccard over shingle multisets.

    ``score = shared / (|query| + |key| - shared)`` where ``shared`` sums the
    minimum count of every common shingle. The score is symmetric, lies in
    ``[0, 1]`` and equals 1.0 only when both multisets are identical. Ties
    go to the shorter key, then to the key indexed first.
    """

    def __init__(self, index: ShingleIndex) -> None:
        self._index = index

    def rank(
        self,
        query: str,
        top_k: int = 5,
        accept: Callable[[str], bool] | None = None,
    ) -> Ranking:
        if top_k < 1:
            raise ValueError(f"top_k must be positive, got {top_k}")
        query_size = sum(self._index.shingles(query).values())
        if query_size == 0:
            return Ranking()

        candidates = self._index.candidates_for(query)
        if accept is not None:
            eligible = [candidate for candidate in candidates if accept(candidate.key)]
        else:
            eligible = candidates
        best = heapq.nsmallest(
            top_k,
            ((self._score(candidate, query_size), candidate) for candidate in eligible),
            key=lambda item: (-item[0], len(item[1].key), item[1].sequence),
        )
        return Ranking(
            matches=[ScoredKey(key=candidate.key, score=score) for score, candidate in best],
            candidate_count=len(eligible),
        )

    @staticmethod
    def _score(candidate: Candidate, query_size: int) -> float:
        union = query_size + candidate.length - candidate.overlap
        if union <= 0:
            return 0.0
        return candidate.overlap / union


__all__ = ["OverlapMatcher", "Ranking", "ScoredKey"]
