"""Exceptions raised by the matching engine and its adapters."""
from __future__ import annotations


class InvalidKeyError(ValueError):
    """Raised when a key, query or payload is empty or malformed."""


class SnapshotError(RuntimeError):
    """Raised when a durable snapshot cannot be written or read."""


class CorpusFormatError(ValueError):
    """Raised when a corpus file cannot be parsed."""


__all__ = ["InvalidKeyError", "SnapshotError", "CorpusFormatError"]
