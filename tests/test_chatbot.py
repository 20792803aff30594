import tempfile
import unittest
from pathlib import Path
from unittest import mock

from application.services.chatbot import ChatBot, ChatBotFactory
from domain.entities import REQUIREMENT_QTYPE, CorpusData, CorpusEntry
from domain.errors import SnapshotError
from infrastructure.config import ContainerConfig, build_default_container
from infrastructure.storage.in_memory_storage import InMemoryStorage


class RecordingStorage(InMemoryStorage):
    """Checks whether watched questions resolve around every write."""

    def __init__(self, *watched: str) -> None:
        super().__init__()
        self.watched = watched
        self.lookups: list[tuple[str, ...]] = []

    def _record(self) -> None:
        self.lookups.append(tuple(key for key in self.watched if self.find(key)[1]))

    def update(self, key, payloads):
        self._record()
        super().update(key, payloads)
        self._record()

    def rename(self, old_key, new_key, payloads):
        self._record()
        super().rename(old_key, new_key, payloads)
        self._record()

    def remove(self, key):
        self._record()
        super().remove(key)
        self._record()


class TestChatBot(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)
        self.config = ContainerConfig(
            db_path=str(self.root / "chatbot.db"),
            snapshot_dir=str(self.root / "snapshots"),
        )
        self.container = build_default_container(self.config)
        self.factory = ChatBotFactory(self.container)
        self.factory.add_project("shop")
        self.bot = self.factory.get("shop")

    def test_respond_with_closest_question(self):
        self.bot.add_corpus(CorpusEntry(question="How are you?", answer="Fine, thanks", project="other"))
        self.bot.add_corpus(CorpusEntry(question="How old are you?", answer="Old enough", project="other"))

        replies = self.bot.respond("how r u")

        self.assertEqual([r.answer for r in replies], ["Fine, thanks", "Old enough"])
        self.assertGreater(replies[0].score, replies[1].score)
        stored = self.container.corpus_repository.get(replies[0].id)
        self.assertEqual(stored.project, "shop")

    def test_contextual_rows(self):
        self.bot.add_corpus(
            CorpusEntry(
                question="I want a refund",
                answer="Which order?",
                project="shop",
                contextual=True,
                data=CorpusData(next_context="refund"),
            )
        )
        self.bot.add_corpus(
            CorpusEntry(question="Order 42", answer="Refund started", project="shop", context="refund")
        )

        first = self.bot.respond("i want a refund")
        self.assertEqual(first[0].next_context, "refund")

        self.assertEqual(self.bot.respond("order 42"), [])
        follow_up = self.bot.respond("order 42", first[0].next_context)
        self.assertEqual(follow_up[0].answer, "Refund started")

    def test_updating_a_row_moves_its_key(self):
        entry = self.bot.add_corpus(CorpusEntry(question="Opening hours", answer="9 to 5", project="shop"))

        self.bot.add_corpus(CorpusEntry(id=entry.id, question="When are you open", answer="9 to 6", project="shop"))

        self.assertEqual(self.bot.storage.keys(), ["when are you open?"])
        self.assertEqual(self.bot.respond("when are you open")[0].answer, "9 to 6")

    def _recording_bot(self, *watched: str) -> ChatBot:
        return ChatBot(
            "shop",
            storage=RecordingStorage(*watched),
            corpus_repository=self.container.corpus_repository,
            config=self.config,
        )

    def test_editing_an_answer_never_hides_the_question(self):
        bot = self._recording_bot("How are you?")
        bot.add_corpus(CorpusEntry(question="How old are you?", answer="Old enough", project="shop"))
        entry = bot.add_corpus(CorpusEntry(question="How are you", answer="Fine", project="shop"))
        keys = bot.storage.keys()
        bot.storage.lookups.clear()

        bot.add_corpus(CorpusEntry(id=entry.id, question="How are you", answer="Great", project="shop"))

        self.assertTrue(bot.storage.lookups)
        self.assertTrue(all(found == ("How are you?",) for found in bot.storage.lookups))
        self.assertEqual(bot.storage.keys(), keys)
        self.assertEqual(bot.respond("how are you")[0].answer, "Great")

    def test_changing_a_question_keeps_the_row_reachable(self):
        bot = self._recording_bot("Opening hours?", "When are you open?")
        entry = bot.add_corpus(CorpusEntry(question="Opening hours", answer="9 to 5", project="shop"))
        bot.storage.lookups.clear()

        bot.add_corpus(CorpusEntry(id=entry.id, question="When are you open", answer="9 to 6", project="shop"))

        self.assertTrue(bot.storage.lookups)
        self.assertTrue(all(found for found in bot.storage.lookups))
        self.assertEqual(bot.storage.lookups[-1], ("When are you open?",))
        self.assertEqual(bot.storage.keys(), ["when are you open?"])

    def test_editing_keeps_payloads_of_other_rows(self):
        bot = self._recording_bot()
        other = bot.add_corpus(CorpusEntry(question="Hi", answer="Hello", project="shop", class_="a"))
        entry = bot.add_corpus(CorpusEntry(question="Hi", answer="Hey", project="shop", class_="b"))

        bot.add_corpus(CorpusEntry(id=entry.id, question="Bye", answer="See you", project="shop", class_="b"))

        self.assertEqual([p.corpus_id for p in bot.storage.get("hi?")], [other.id])
        self.assertEqual([p.corpus_id for p in bot.storage.get("bye?")], [entry.id])

    def test_demoting_a_row_to_requirement_unindexes_it(self):
        entry = self.bot.add_corpus(CorpusEntry(question="Your name", answer="ask", project="shop"))

        self.bot.add_corpus(
            CorpusEntry(id=entry.id, question="Your name", answer="ask", project="shop", qtype=REQUIREMENT_QTYPE)
        )

        self.assertEqual(self.bot.storage.count(), 0)

    def test_requirement_rows_are_not_indexed(self):
        self.bot.add_corpus(CorpusEntry(question="Your name?", answer="ask", project="shop", qtype=REQUIREMENT_QTYPE))

        self.assertEqual(self.bot.storage.count(), 0)

    def test_remove_corpus(self):
        entry = self.bot.add_corpus(CorpusEntry(question="Hi", answer="Hello", project="shop"))

        removed = self.bot.remove_corpus(entry.id)

        self.assertEqual(removed.id, entry.id)
        self.assertEqual(self.bot.respond("hi"), [])
        self.assertIsNone(self.bot.remove_corpus(entry.id))

    def test_min_confidence_from_project_config(self):
        self.factory.add_project("strict", {"min_confidence": 0.9})
        bot = self.factory.get("strict")
        bot.add_corpus(CorpusEntry(question="How are you?", answer="Fine", project="strict"))

        self.assertEqual(bot.respond("how r u"), [])
        self.assertEqual(bot.respond("How are you?")[0].score, 1.0)

    def test_blank_utterance(self):
        self.assertEqual(self.bot.get_response("   "), [])
        self.assertEqual(self.bot.respond(""), [])


class TestChatBotFactory(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)
        self.config = ContainerConfig(
            db_path=str(self.root / "chatbot.db"),
            storage="snapshot",
            snapshot_dir=str(self.root / "snapshots"),
        )
        self.container = build_default_container(self.config)

    def test_init_loads_projects_from_database(self):
        factory = ChatBotFactory(self.container)
        factory.add_project("shop")
        factory.get("shop").add_corpus(CorpusEntry(question="Hi", answer="Hello", project="shop"))
        factory.get("shop").sync()

        restarted = ChatBotFactory(self.container)
        restarted.init()

        self.assertEqual(restarted.get("shop").respond("hi")[0].answer, "Hello")
        self.assertTrue((self.root / "snapshots" / "shop.json").exists())

    def test_corpus_directory_is_imported_on_init(self):
        corpus_dir = self.root / "corpus"
        corpus_dir.mkdir()
        (corpus_dir / "greetings.yml").write_text(
            "categories:\n- greetings\nconversations:\n- - Hello\n  - Hi there!\n",
            encoding="utf-8",
        )
        factory = ChatBotFactory(self.container)

        factory.add_project("greeter", {"corpus_dir": str(corpus_dir)})

        replies = factory.get("greeter").respond("hello")
        self.assertEqual(replies[0].answer, "Hi there!")
        self.assertEqual(replies[0].class_, "greetings")

    def test_duplicate_and_removed_projects(self):
        factory = ChatBotFactory(self.container)
        factory.add_project("shop")

        with self.assertRaises(ValueError):
            factory.add_project("shop")
        self.assertEqual([p.name for p in factory.list_projects()], ["shop"])
        self.assertTrue(factory.remove_project("shop"))
        self.assertIsNone(factory.get("shop"))
        self.assertIsNone(factory.get_project("shop"))
        self.assertFalse(factory.remove_project("shop"))

    def test_removing_a_project_drops_its_corpus(self):
        factory = ChatBotFactory(self.container)
        factory.add_project("shop")
        factory.add_project("bank")
        factory.get("shop").add_corpus(CorpusEntry(question="Hi", answer="Hello", project="shop"))
        factory.get("bank").add_corpus(CorpusEntry(question="Hi", answer="Welcome", project="bank"))

        factory.remove_project("shop")

        self.assertEqual(self.container.corpus_repository.list("shop"), [])
        self.assertEqual(len(self.container.corpus_repository.list("bank")), 1)

    def test_failed_init_does_not_leave_a_project_behind(self):
        factory = ChatBotFactory(self.container)

        with mock.patch.object(ChatBot, "init", side_effect=SnapshotError("disk full")):
            with self.assertRaises(SnapshotError):
                factory.add_project("shop")

        self.assertIsNone(factory.get("shop"))
        self.assertIsNone(factory.get_project("shop"))
        self.assertEqual(factory.add_project("shop").name, "shop")


if __name__ == "__main__":
    unittest.main()
