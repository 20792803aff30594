"""Storage adapter backed by a JSON snapshot file."""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Sequence

from domain.entities import Payload, SearchResult
from domain.errors import SnapshotError
from domain.interfaces import StorageAdapter
from infrastructure.storage.in_memory_storage import InMemoryStorage

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class JsonSnapshot:
    """Reads and atomically replaces one snapshot file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> tuple[tuple[int, ...], dict[str, list[Payload]]]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SnapshotError(f"Cannot read snapshot {self.path}: {exc}") from exc
        if not isinstance(raw, dict) or raw.get("version") != SNAPSHOT_VERSION:
            raise SnapshotError(f"Unsupported snapshot format in {self.path}")
        try:
            sizes = tuple(int(n) for n in raw.get("ngram_sizes") or ())
            entries = {
                str(item["key"]): [Payload.decode(content) for content in item["payloads"]]
                for item in raw.get("entries", [])
            }
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Malformed snapshot {self.path}: {exc}") from exc
        return sizes, entries

    def write(self, ngram_sizes: Sequence[int], entries: dict[str, tuple[Payload, ...]]) -> None:
        """Write to a sibling temp file, fsync, then rename over the target."""
        document = {
            "version": SNAPSHOT_VERSION,
            "ngram_sizes": list(ngram_sizes),
            "entries": [
                {"key": key, "payloads": [payload.encode() for payload in payloads]}
                for key, payloads in entries.items()
            ],
        }
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Cannot write snapshot {self.path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Could not remove temporary snapshot %s", tmp_name)


class SnapshotStorage(StorageAdapter):
    """In-memory storage that loads from and syncs to a snapshot file.

    ``sync`` copies the map under the read lock and serializes it after the
    lock is released, so queries and mutations are only blocked for the copy.
    """

    def __init__(
        self,
        snapshot_path: str | Path,
        ngram_sizes: Sequence[int] | None = None,
        top_k: int = 5,
    ) -> None:
        self._snapshot = JsonSnapshot(snapshot_path)
        self._memory = InMemoryStorage(ngram_sizes=ngram_sizes, top_k=top_k)
        self._sync_lock = threading.Lock()
        if self._snapshot.exists():
            stored_sizes, entries = self._snapshot.read()
            if stored_sizes and stored_sizes != self._memory.ngram_sizes:
                logger.info(
                    "Snapshot %s was built with n-gram sizes %s, reindexing with %s",
                    self._snapshot.path,
                    stored_sizes,
                    self._memory.ngram_sizes,
                )
            self._memory.load(entries)
            logger.info("Loaded %d keys from %s", self._memory.count(), self._snapshot.path)

    @property
    def path(self) -> Path:
        return self._snapshot.path

    @property
    def memory(self) -> InMemoryStorage:
        return self._memory

    def count(self) -> int:
        return self._memory.count()

    def keys(self) -> list[str]:
        return self._memory.keys()

    def get(self, key: str) -> tuple[Payload, ...]:
        return self._memory.get(key)

    def find(self, key: str, *contexts: str) -> tuple[list[Payload], bool]:
        return self._memory.find(key, *contexts)

    def search(self, query: str, *contexts: str, top_k: int | None = None) -> SearchResult:
        return self._memory.search(query, *contexts, top_k=top_k)

    def update(self, key: str, payloads: Payload | Sequence[Payload]) -> None:
        self._memory.update(key, payloads)

    def rename(self, old_key: str, new_key: str, payloads: Payload | Sequence[Payload]) -> None:
        self._memory.rename(old_key, new_key, payloads)

    def remove(self, key: str) -> None:
        self._memory.remove(key)

    def build_index(self) -> None:
        self._memory.build_index()

    def sync(self) -> None:
        with self._sync_lock:
            entries = self._memory.snapshot()
            try:
                self._snapshot.write(self._memory.ngram_sizes, entries)
            except SnapshotError:
                logger.exception("Snapshot sync to %s failed", self._snapshot.path)
                raise
            logger.info("Synced %d keys to %s", len(entries), self._snapshot.path)


__all__ = ["JsonSnapshot", "SnapshotStorage", "SNAPSHOT_VERSION"]
