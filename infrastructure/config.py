"""Dependency wiring for the chatbot matching service."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Literal, Mapping

from domain.interfaces import CorpusRepository, ProjectRepository, StorageAdapter
from infrastructure.repositories.sqlite_corpus_repository import SqliteCorpusRepository
from infrastructure.repositories.sqlite_project_repository import SqliteProjectRepository
from infrastructure.storage.in_memory_storage import InMemoryStorage
from infrastructure.storage.snapshot_storage import SnapshotStorage

StorageName = Literal["memory", "snapshot"]

ENV_PREFIX = "CHATBOT_"


@dataclass(slots=True)
class ContainerConfig:
    """Service settings; per-project config may override the matching knobs."""

    db_path: str = "chatbot.db"
    storage: StorageName = "memory"
    snapshot_dir: str = "snapshots"
    ngram_sizes: tuple[int, ...] = (2, 3)
    top_k: int = 5
    min_confidence: float = 0.0
    corpus_dir: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ContainerConfig:
        """Build a config from ``CHATBOT_*`` variables, falling back to defaults."""

        env = os.environ if environ is None else environ
        cfg = cls()
        overrides: dict[str, Any] = {}
        for item in fields(cls):
            raw = env.get(f"{ENV_PREFIX}{item.name.upper()}")
            if raw is None or raw == "":
                continue
            overrides[item.name] = _coerce(item.name, raw, getattr(cfg, item.name))
        return replace(cfg, **overrides)

    def for_project(self, overrides: Mapping[str, Any] | None) -> ContainerConfig:
        """Apply a project's stored config on top of the service config."""

        if not overrides:
            return self
        allowed = {"ngram_sizes", "top_k", "min_confidence", "corpus_dir", "storage"}
        updates = {
            key: _coerce(key, value, getattr(self, key))
            for key, value in overrides.items()
            if key in allowed and value is not None
        }
        return replace(self, **updates)

    def snapshot_path(self, project: str) -> Path:
        return Path(self.snapshot_dir) / f"{project}.json"


def _coerce(name: str, value: Any, default: Any) -> Any:
    if name == "ngram_sizes":
        if isinstance(value, str):
            parts = [part for part in value.replace(" ", "").split(",") if part]
        else:
            parts = list(value)
        return tuple(int(part) for part in parts)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return str(value)


StorageFactory = Callable[[ContainerConfig, str], StorageAdapter]


def _memory_storage(cfg: ContainerConfig, project: str) -> StorageAdapter:
    return InMemoryStorage(ngram_sizes=cfg.ngram_sizes, top_k=cfg.top_k)


def _snapshot_storage(cfg: ContainerConfig, project: str) -> StorageAdapter:
    return SnapshotStorage(cfg.snapshot_path(project), ngram_sizes=cfg.ngram_sizes, top_k=cfg.top_k)


_STORAGE_FACTORIES: dict[StorageName, StorageFactory] = {
    "memory": _memory_storage,
    "snapshot": _snapshot_storage,
}


@dataclass(slots=True)
class Container:
    """Repositories plus a storage factory, owned by the process wiring them."""

    config: ContainerConfig
    corpus_repository: CorpusRepository
    project_repository: ProjectRepository
    storage_factories: dict[str, StorageFactory] = field(default_factory=lambda: dict(_STORAGE_FACTORIES))

    def create_storage(self, project: str, config: ContainerConfig | None = None) -> StorageAdapter:
        cfg = config or self.config
        try:
            factory = self.storage_factories[cfg.storage]
        except KeyError as exc:
            raise ValueError(f"Unknown storage '{cfg.storage}'") from exc
        return factory(cfg, project)


def build_default_container(config: ContainerConfig | None = None) -> Container:
    """Instantiate the default infrastructure stack."""

    cfg = config or ContainerConfig.from_env()
    if cfg.storage not in _STORAGE_FACTORIES:
        raise ValueError(f"Unknown storage '{cfg.storage}'")
    Path(cfg.db_path).parent.mkdir(parents=True, exist_ok=True)
    return Container(
        config=cfg,
        corpus_repository=SqliteCorpusRepository(db_path=cfg.db_path),
        project_repository=SqliteProjectRepository(db_path=cfg.db_path),
    )


__all__ = ["Container", "ContainerConfig", "build_default_container"]
