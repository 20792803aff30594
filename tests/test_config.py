import tempfile
import unittest
from pathlib import Path

from infrastructure.config import ContainerConfig, build_default_container
from infrastructure.storage.in_memory_storage import InMemoryStorage
from infrastructure.storage.snapshot_storage import SnapshotStorage


class TestContainerConfig(unittest.TestCase):
    def test_from_env_reads_prefixed_variables(self):
        cfg = ContainerConfig.from_env(
            {
                "CHATBOT_DB_PATH": "/data/bot.db",
                "CHATBOT_STORAGE": "snapshot",
                "CHATBOT_NGRAM_SIZES": "3, 4",
                "CHATBOT_TOP_K": "7",
                "CHATBOT_MIN_CONFIDENCE": "0.25",
                "CHATBOT_CORPUS_DIR": "",
                "UNRELATED": "x",
            }
        )

        self.assertEqual(cfg.db_path, "/data/bot.db")
        self.assertEqual(cfg.storage, "snapshot")
        self.assertEqual(cfg.ngram_sizes, (3, 4))
        self.assertEqual(cfg.top_k, 7)
        self.assertEqual(cfg.min_confidence, 0.25)
        self.assertIsNone(cfg.corpus_dir)

    def test_from_env_defaults(self):
        self.assertEqual(ContainerConfig.from_env({}), ContainerConfig())

    def test_project_overrides_only_matching_knobs(self):
        base = ContainerConfig(db_path="bot.db")

        cfg = base.for_project({"top_k": "2", "ngram_sizes": [2], "db_path": "elsewhere.db", "theme": "dark"})

        self.assertEqual(cfg.top_k, 2)
        self.assertEqual(cfg.ngram_sizes, (2,))
        self.assertEqual(cfg.db_path, "bot.db")
        self.assertIs(base.for_project({}), base)

    def test_snapshot_path_per_project(self):
        cfg = ContainerConfig(snapshot_dir="snaps")

        self.assertEqual(cfg.snapshot_path("shop"), Path("snaps") / "shop.json")


class TestContainer(unittest.TestCase):
    def test_creates_configured_storage(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = ContainerConfig(db_path=str(Path(tmp) / "bot.db"), snapshot_dir=str(Path(tmp) / "snaps"))
            container = build_default_container(cfg)

            self.assertIsInstance(container.create_storage("shop"), InMemoryStorage)
            snapshot = container.create_storage("shop", cfg.for_project({"storage": "snapshot"}))
            self.assertIsInstance(snapshot, SnapshotStorage)
            self.assertEqual(snapshot.path, Path(tmp) / "snaps" / "shop.json")

    def test_unknown_storage_is_rejected(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = ContainerConfig(db_path=str(Path(tmp) / "bot.db"))
            container = build_default_container(cfg)

            with self.assertRaises(ValueError):
                container.create_storage("shop", cfg.for_project({"storage": "redis"}))
            with self.assertRaises(ValueError):
                build_default_container(ContainerConfig(db_path=cfg.db_path, storage="redis"))


if __name__ == "__main__":
    unittest.main()
