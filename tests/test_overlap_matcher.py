import unittest

from infrastructure.index.shingle_index import ShingleIndex
from infrastructure.matching.overlap_matcher import OverlapMatcher


def _matcher(keys, ngram_sizes=None):
    index = ShingleIndex(ngram_sizes)
    for key in keys:
        index.add(key)
    return OverlapMatcher(index)


class TestOverlapMatcher(unittest.TestCase):
    def test_identical_text_scores_one(self):
        matcher = _matcher(["how are you?", "what time is it?"])

        ranking = matcher.rank("How are   you?")

        self.assertEqual(ranking.matches[0].key, "how are you?")
        self.assertEqual(ranking.matches[0].score, 1.0)

    def test_closer_character_overlap_ranks_higher(self):
        for sizes in ((2,), (3,), (2, 3)):
            with self.subTest(ngram_sizes=sizes):
                matcher = _matcher(["how old are you?", "how are you?"], sizes)

                ranking = matcher.rank("how r u")

                self.assertEqual([m.key for m in ranking.matches], ["how are you?", "how old are you?"])
                self.assertGreater(ranking.matches[0].score, ranking.matches[1].score)

    def test_scores_are_ordered_and_bounded(self):
        matcher = _matcher(["hello there", "hello", "help me", "goodbye"])

        ranking = matcher.rank("hello")

        scores = [match.score for match in ranking.matches]
        self.assertEqual(scores, sorted(scores, reverse=True))
        for score in scores:
            self.assertGreater(score, 0.0)
            self.assertLessEqual(score, 1.0)

    def test_score_is_symmetric(self):
        forward = _matcher(["how are you?"]).rank("how old are you?")
        backward = _matcher(["how old are you?"]).rank("how are you?")

        self.assertAlmostEqual(forward.matches[0].score, backward.matches[0].score)

    def test_equal_scores_prefer_shorter_key(self):
        matcher = _matcher(["abcxyz", "ab"], (2,))

        ranking = matcher.rank("abcd")

        self.assertEqual(ranking.matches[0].score, ranking.matches[1].score)
        self.assertEqual([m.key for m in ranking.matches], ["ab", "abcxyz"])

    def test_equal_scores_and_lengths_prefer_first_indexed(self):
        matcher = _matcher(["aby", "abx"], (2,))

        ranking = matcher.rank("ab")

        self.assertEqual([m.key for m in ranking.matches], ["aby", "abx"])

    def test_top_k_truncates(self):
        matcher = _matcher(["hello", "hello there", "hello world"])

        ranking = matcher.rank("hello", top_k=2)

        self.assertEqual(len(ranking.matches), 2)
        self.assertEqual(ranking.candidate_count, 3)

    def test_no_shared_shingle_is_no_match(self):
        ranking = _matcher(["abc"]).rank("xyz")

        self.assertTrue(ranking.no_match)
        self.assertEqual(ranking.matches, [])

    def test_blank_query_returns_empty_ranking(self):
        ranking = _matcher(["abc"]).rank("   ")

        self.assertTrue(ranking.no_match)
        self.assertEqual(ranking.matches, [])

    def test_accept_filter_runs_before_truncation(self):
        matcher = _matcher(["hello", "hello there", "hello world"])

        ranking = matcher.rank("hello", top_k=1, accept=lambda key: key != "hello")

        self.assertEqual(len(ranking.matches), 1)
        self.assertNotEqual(ranking.matches[0].key, "hello")
        self.assertEqual(ranking.candidate_count, 2)

    def test_invalid_top_k(self):
        with self.assertRaises(ValueError):
            _matcher(["abc"]).rank("abc", top_k=0)


if __name__ == "__main__":
    unittest.main()
