"""Import corpus files into the database and write a trained snapshot."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from application.services.chatbot import ChatBot
from domain.errors import CorpusFormatError, SnapshotError
from infrastructure.config import ContainerConfig, build_default_container
from infrastructure.corpus.file_loader import find_corpus_files, load_corpora
from infrastructure.storage.snapshot_storage import SnapshotStorage
from ui.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("-d", "--dir", dest="corpus_dir", help="Directory with *.json/*.yml/*.yaml corpus files")
    parser.add_argument(
        "-i",
        "--input",
        dest="inputs",
        action="append",
        default=[],
        help="Corpus file; may be passed several times or as a comma separated list",
    )
    parser.add_argument("--db", default="chatbot.db", help="SQLite database path (default: chatbot.db)")
    parser.add_argument("--project", default="DMS", help="Project name (default: DMS)")
    parser.add_argument("-o", "--output", default="corpus.json", help="Snapshot file to write (default: corpus.json)")
    parser.add_argument(
        "--ngram-sizes",
        default="2,3",
        help="Comma separated shingle widths (default: 2,3)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    return parser.parse_args(argv)


def collect_files(corpus_dir: str | None, inputs: list[str]) -> list[Path]:
    files: list[Path] = []
    if corpus_dir:
        files.extend(find_corpus_files(corpus_dir))
    for item in inputs:
        files.extend(Path(part) for part in item.split(",") if part.strip())
    return files


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)

    ngram_sizes = tuple(int(part) for part in args.ngram_sizes.split(",") if part.strip())
    config = ContainerConfig(db_path=args.db, storage="snapshot", ngram_sizes=ngram_sizes)
    container = build_default_container(config)
    storage = SnapshotStorage(args.output, ngram_sizes=ngram_sizes, top_k=config.top_k)
    bot = ChatBot(args.project, storage=storage, corpus_repository=container.corpus_repository, config=config)

    files = collect_files(args.corpus_dir, args.inputs)
    try:
        if files:
            bot.save_corpora(load_corpora(files))
        trained = bot.train_with_db()
        bot.sync()
    except (CorpusFormatError, SnapshotError) as exc:
        logger.error("Training failed: %s", exc)
        return 1

    logger.info("Project %s: %d keys written to %s", args.project, trained, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
