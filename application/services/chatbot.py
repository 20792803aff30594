"""Per-project chatbots and the factory holding them."""
from __future__ import annotations

import logging
import threading
from dataclasses import replace

from application.use_cases.respond import respond
from application.use_cases.train import add_entry, remove_entry, replace_entry, train_storage
from domain.entities import CORPUS_QTYPE, Answer, CorpusEntry, Project, Reply
from domain.interfaces import CorpusRepository, StorageAdapter
from infrastructure.config import Container, ContainerConfig
from infrastructure.corpus.file_loader import find_corpus_files, load_corpora
from infrastructure.logic.closest_match import ClosestMatch

logger = logging.getLogger(__name__)


class ChatBot:
    """Matching engine of one project, kept in step with its corpus rows."""

    def __init__(
        self,
        project: str,
        *,
        storage: StorageAdapter,
        corpus_repository: CorpusRepository,
        config: ContainerConfig,
    ) -> None:
        self.project = project
        self.storage = storage
        self.config = config
        self.logic = ClosestMatch(storage, top_k=config.top_k)
        self._corpus_repository = corpus_repository
        self._corpus_lock = threading.Lock()

    def init(self) -> int:
        """Import the corpus directory, if any, then train from the database."""

        if self.config.corpus_dir:
            files = find_corpus_files(self.config.corpus_dir)
            if files:
                self.save_corpora(load_corpora(files))
        trained = self.train_with_db()
        self.storage.sync()
        return trained

    def train_with_db(self) -> int:
        entries = self._corpus_repository.list_for_training(self.project)
        return train_storage(entries, self.storage, replace=True)

    def save_corpora(self, corpora: dict[str, list[tuple[str, str]]]) -> int:
        saved = 0
        for category, pairs in corpora.items():
            for question, answer in pairs:
                entry = CorpusEntry(question=question, answer=answer, project=self.project, class_=category)
                self._corpus_repository.add(entry)
                saved += 1
        logger.info("Saved %d corpus rows for project %s", saved, self.project)
        return saved

    def get_response(self, text: str, *contexts: str) -> list[Answer]:
        if self.logic.can_process(text):
            return self.logic.process(text, *contexts)
        return []

    def respond(self, text: str, *contexts: str) -> list[Reply]:
        return respond(
            text,
            logic=self.logic,
            corpus_repository=self._corpus_repository,
            contexts=contexts,
            min_confidence=self.config.min_confidence,
        )

    def add_corpus(self, entry: CorpusEntry) -> CorpusEntry:
        """Save a row and patch the index for its old and new questions."""

        entry = replace(entry, project=self.project)
        with self._corpus_lock:
            previous = self._corpus_repository.get(entry.id) if entry.id else None
            self._corpus_repository.add(entry)
            indexed = entry if entry.qtype == CORPUS_QTYPE else None
            if previous is not None:
                replace_entry(previous, indexed, self.storage)
            elif indexed is not None:
                add_entry(indexed, self.storage)
        return entry

    def remove_corpus(self, corpus_id: int) -> CorpusEntry | None:
        with self._corpus_lock:
            entry = self._corpus_repository.remove(corpus_id)
            if entry is not None:
                remove_entry(entry, self.storage)
        return entry

    def record_feedback(self, corpus_id: int, accepted: bool) -> None:
        self._corpus_repository.record_feedback(corpus_id, accepted)

    def sync(self) -> None:
        self.storage.sync()


class ChatBotFactory:
    """Registry of one ChatBot per project, created from the project table."""

    def __init__(self, container: Container) -> None:
        self._container = container
        self._lock = threading.Lock()
        self._bots: dict[str, ChatBot] = {}

    def init(self) -> None:
        for project in self._container.project_repository.list():
            if not project.name or self.get(project.name) is not None:
                continue
            logger.info("Loading project '%s'", project.name)
            self._register(project)

    refresh = init

    def get(self, name: str) -> ChatBot | None:
        with self._lock:
            return self._bots.get(name)

    def list_projects(self) -> list[Project]:
        return self._container.project_repository.list()

    def get_project(self, name: str) -> Project | None:
        return self._container.project_repository.get(name)

    def add_project(self, name: str, config: dict | None = None) -> Project:
        project = self._container.project_repository.add(Project(name=name, config=dict(config or {})))
        try:
            self._register(project)
        except Exception:
            logger.error("Initializing project '%s' failed, dropping it", name)
            self._container.project_repository.remove(name)
            raise
        logger.info("Added project '%s' with id %s", name, project.id)
        return project

    def remove_project(self, name: str) -> bool:
        """Drop a project, its bot and its corpus rows."""

        removed = self._container.project_repository.remove(name)
        with self._lock:
            self._bots.pop(name, None)
        if removed:
            rows = self._container.corpus_repository.remove_project(name)
            logger.info("Removed project '%s' and %d corpus rows", name, rows)
        return removed

    def _register(self, project: Project) -> ChatBot:
        config = self._container.config.for_project(project.config)
        bot = ChatBot(
            project.name,
            storage=self._container.create_storage(project.name, config),
            corpus_repository=self._container.corpus_repository,
            config=config,
        )
        bot.init()
        with self._lock:
            return self._bots.setdefault(project.name, bot)


__all__ = ["ChatBot", "ChatBotFactory"]
