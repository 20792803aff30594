"""Domain entities for the chatbot matching engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

PAYLOAD_DELIMITER = "$$$$"


@dataclass(frozen=True, slots=True)
class Payload:
    """Answer record carried by an indexed key.

    Encoded on the wire as ``question$$$$answer$$$$corpus_id$$$$context``.
    ``context`` is the tag a conversation must carry for this payload to be
    eligible; an empty tag means the payload answers in any turn.
    """

    question: str
    answer: str
    corpus_id: int | None = None
    context: str = ""

    def encode(self) -> str:
        corpus_id = "" if self.corpus_id is None else str(self.corpus_id)
        return PAYLOAD_DELIMITER.join((self.question, self.answer, corpus_id, self.context))

    @classmethod
    def decode(cls, content: str) -> Payload:
        parts = content.split(PAYLOAD_DELIMITER)
        if len(parts) < 2:
            raise ValueError(f"Payload content has no '{PAYLOAD_DELIMITER}' delimiter: {content!r}")
        parts += [""] * (4 - len(parts))
        question, answer, raw_id, context = parts[:4]
        corpus_id = int(raw_id) if raw_id.strip() else None
        return cls(question=question, answer=answer, corpus_id=corpus_id, context=context)

    def accepts(self, contexts: tuple[str, ...]) -> bool:
        """Context-agnostic payloads are always eligible."""
        if not self.context:
            return True
        return self.context in contexts


@dataclass(slots=True)
class SearchHit:
    """A ranked key resolved back to its eligible payloads."""

    key: str
    score: float
    payloads: list[Payload] = field(default_factory=list)


@dataclass(slots=True)
class SearchResult:
    """Ordered hits for a query.

    ``no_match`` is set when no indexed key shared a single shingle with the
    query, as opposed to hits that exist but score low.
    """

    query: str
    hits: list[SearchHit] = field(default_factory=list)
    no_match: bool = False


@dataclass(slots=True)
class CorpusData:
    """Typed extension data stored with a corpus row.

    ``next_context`` is the tag a client should send with the next turn when
    the row is contextual. ``extra`` is reserved for free-form fields.
    """

    next_context: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"next_context": self.next_context, "extra": dict(self.extra)}

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> CorpusData:
        if not raw:
            return cls()
        return cls(next_context=str(raw.get("next_context", "")), extra=dict(raw.get("extra") or {}))


@dataclass(slots=True)
class CorpusEntry:
    """A question/answer row of a project corpus."""

    question: str
    answer: str
    project: str
    id: int | None = None
    class_: str = ""
    qtype: int = 1
    context: str = ""
    contextual: bool = False
    data: CorpusData = field(default_factory=CorpusData)
    accept_count: int = 0
    reject_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class Project:
    """A tenant with its own corpus and matching engine."""

    name: str
    config: dict[str, Any] = field(default_factory=dict)
    id: int | None = None


@dataclass(slots=True)
class Answer:
    """Logic adapter output: encoded payload content with a confidence."""

    content: str
    confidence: float
    payload: Payload


@dataclass(slots=True)
class Reply:
    """Answer joined with its corpus row, as returned to callers."""

    question: str
    answer: str
    score: float
    id: int | None = None
    context: str = ""
    contextual: bool = False
    next_context: str = ""
    class_: str = ""
    data: dict[str, Any] = field(default_factory=dict)


CORPUS_QTYPE = 1
REQUIREMENT_QTYPE = 2


__all__ = [
    "PAYLOAD_DELIMITER",
    "Payload",
    "SearchHit",
    "SearchResult",
    "CorpusData",
    "CorpusEntry",
    "Project",
    "Answer",
    "Reply",
    "CORPUS_QTYPE",
    "REQUIREMENT_QTYPE",
]
