from infrastructure.repositories.sqlite_corpus_repository import SqliteCorpusRepository
from infrastructure.repositories.sqlite_project_repository import SqliteProjectRepository

__all__ = [
    "SqliteCorpusRepository",
    "SqliteProjectRepository",
]
