"""Use case that trains a storage adapter from corpus rows."""
from __future__ import annotations

import logging
import re
import time
from typing import Iterable

from domain.entities import CorpusEntry, Payload
from domain.interfaces import StorageAdapter
from infrastructure.index.shingle_index import normalize

logger = logging.getLogger(__name__)

_QUESTION_SEPARATORS = re.compile(r"[|｜\r\n]+")


def split_questions(question: str) -> list[str]:
    """Split a multi-variant question field and make each variant end in '?'."""

    variants: list[str] = []
    for variant in _QUESTION_SEPARATORS.split(question):
        variant = variant.strip()
        if not variant:
            continue
        if not variant.endswith(("?", "？")):
            variant = f"{variant}?"
        variants.append(variant)
    return variants


def payloads_for(entry: CorpusEntry) -> list[tuple[str, Payload]]:
    """Return ``(key, payload)`` for every question variant of a row."""

    return [
        (
            variant,
            Payload(question=variant, answer=entry.answer, corpus_id=entry.id, context=entry.context),
        )
        for variant in split_questions(entry.question)
    ]


def train_storage(
    entries: Iterable[CorpusEntry],
    storage: StorageAdapter,
    *,
    replace: bool = False,
) -> int:
    """Load corpus rows into ``storage`` and rebuild its index once.

    Rows sharing a question are grouped so the key keeps every answer. With
    ``replace`` set, keys absent from ``entries`` are dropped first.
    Returns the number of keys written.
    """

    start = time.perf_counter()
    grouped: dict[str, list[Payload]] = {}
    for entry in entries:
        for key, payload in payloads_for(entry):
            grouped.setdefault(normalize(key), []).append(payload)

    if replace:
        for key in storage.keys():
            if key not in grouped:
                storage.remove(key)
    for key, payloads in grouped.items():
        storage.update(key, payloads)
    storage.build_index()

    logger.info(
        "Trained %d keys (%d stored) in %.3fs",
        len(grouped),
        storage.count(),
        time.perf_counter() - start,
    )
    return len(grouped)


def add_entry(entry: CorpusEntry, storage: StorageAdapter) -> None:
    """Index one saved row without rebuilding the whole index."""

    for key, payload in payloads_for(entry):
        kept = [item for item in storage.get(key) if entry.id is None or item.corpus_id != entry.id]
        storage.update(key, [*kept, payload])


def replace_entry(previous: CorpusEntry, entry: CorpusEntry | None, storage: StorageAdapter) -> None:
    """Move an edited row's payloads from its old questions to its new ones.

    ``entry`` is None when the row no longer belongs in the index. Keys that
    keep or gain payloads are written before keys left empty are removed, and
    a single changed question goes through one ``rename``, so lookups never
    miss the row while it is edited.
    """

    incoming: dict[str, list[Payload]] = {}
    if entry is not None:
        for key, payload in payloads_for(entry):
            incoming.setdefault(normalize(key), []).append(payload)
    outgoing = [normalize(key) for key, _payload in payloads_for(previous)]

    targets: dict[str, list[Payload]] = {}
    appearing: list[str] = []
    for key in [*incoming, *outgoing]:
        if key in targets:
            continue
        existing = storage.get(key)
        if not existing:
            appearing.append(key)
        kept = [item for item in existing if item.corpus_id != previous.id]
        targets[key] = kept + incoming.get(key, [])
    appearing = [key for key in appearing if targets[key]]
    vanishing = [key for key, payloads in targets.items() if not payloads]

    if len(vanishing) == 1 and len(appearing) == 1:
        old, new = vanishing.pop(), appearing[0]
        storage.rename(old, new, targets.pop(new))
        del targets[old]
    for key, payloads in targets.items():
        if payloads:
            storage.update(key, payloads)
    for key in vanishing:
        storage.remove(key)


def remove_entry(entry: CorpusEntry, storage: StorageAdapter) -> None:
    """Drop a row's payloads, removing keys left without any."""

    for key, _payload in payloads_for(entry):
        existing = storage.get(key)
        if not existing:
            continue
        kept = [item for item in existing if item.corpus_id != entry.id]
        if kept:
            storage.update(key, kept)
        else:
            storage.remove(key)


__all__ = ["split_questions", "payloads_for", "train_storage", "add_entry", "replace_entry", "remove_entry"]
