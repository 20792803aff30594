"""Use case that answers an utterance with corpus replies."""
from __future__ import annotations

from domain.entities import Reply
from domain.interfaces import CorpusRepository, LogicAdapter


def respond(
    text: str,
    *,
    logic: LogicAdapter,
    corpus_repository: CorpusRepository,
    contexts: tuple[str, ...] = (),
    min_confidence: float = 0.0,
) -> list[Reply]:
    """Return replies scoring at least ``min_confidence``, best first."""

    replies: list[Reply] = []
    for answer in logic.process(text, *contexts):
        if answer.confidence < min_confidence:
            continue
        payload = answer.payload
        entry = corpus_repository.get(payload.corpus_id) if payload.corpus_id is not None else None
        if entry is None:
            replies.append(
                Reply(
                    question=payload.question,
                    answer=payload.answer,
                    score=answer.confidence,
                    id=payload.corpus_id,
                    context=payload.context,
                )
            )
            continue
        replies.append(
            Reply(
                question=payload.question,
                answer=payload.answer,
                score=answer.confidence,
                id=entry.id,
                context=entry.context,
                contextual=entry.contextual,
                next_context=entry.data.next_context if entry.contextual else "",
                class_=entry.class_,
                data=dict(entry.data.extra),
            )
        )
    return replies


__all__ = ["respond"]
