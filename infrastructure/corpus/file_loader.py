"""Loader for chatterbot-corpus style YAML/JSON files."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

import yaml

from domain.errors import CorpusFormatError

logger = logging.getLogger(__name__)

CORPUS_EXTENSIONS = (".json", ".yml", ".yaml")

QAPair = tuple[str, str]


def find_corpus_files(directory: str | Path) -> list[Path]:
    """Return corpus files directly inside ``directory``, sorted by name."""
    root = Path(directory)
    if not root.is_dir():
        return []
    return sorted(path for path in root.iterdir() if path.is_file() and path.suffix.lower() in CORPUS_EXTENSIONS)


def _read_document(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CorpusFormatError(f"Cannot read corpus file {path}: {exc}") from exc
    if not raw.strip():
        return {}
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (ValueError, yaml.YAMLError) as exc:
        raise CorpusFormatError(f"Cannot parse corpus file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise CorpusFormatError(f"Corpus file {path} must contain a mapping")
    return data


def _pairs(conversation: Any) -> list[QAPair]:
    if not isinstance(conversation, list):
        return []
    turns = [str(turn).strip() for turn in conversation if turn is not None]
    return [
        (question, answer)
        for question, answer in zip(turns, turns[1:])
        if question and answer
    ]


def load_corpus_file(path: str | Path) -> dict[str, list[QAPair]]:
    """Parse one file into ``{category: [(question, answer), ...]}``.

    Every conversation contributes its consecutive turn pairs, so
    ``[a, b, c]`` yields ``(a, b)`` and ``(b, c)``. Pairs are filed under the
    first listed category, or the file stem when there is none.
    """
    file_path = Path(path)
    data = _read_document(file_path)
    categories = data.get("categories") or [file_path.stem]
    if isinstance(categories, str):
        categories = [categories]
    pairs: list[QAPair] = []
    for conversation in data.get("conversations") or []:
        pairs.extend(_pairs(conversation))
    return {str(categories[0]): pairs}


def load_corpora(paths: Iterable[str | Path]) -> dict[str, list[QAPair]]:
    """Merge several corpus files, keeping the pair order of each file."""
    corpora: dict[str, list[QAPair]] = {}
    for path in paths:
        for category, pairs in load_corpus_file(path).items():
            corpora.setdefault(category, []).extend(pairs)
        logger.info("Loaded corpus file %s", path)
    return corpora


__all__ = ["CORPUS_EXTENSIONS", "find_corpus_files", "load_corpus_file", "load_corpora"]
