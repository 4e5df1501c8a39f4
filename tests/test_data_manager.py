"""
Unit tests for DataManager and catalog decoding.
"""
import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from iquiz.data_manager import (
    DataManager,
    GENERIC_ICON,
    decode_remote_quizzes,
    icon_name_for,
    map_remote_quizzes,
)
from iquiz.errors import QuizDecodeError, QuizStoreError
from iquiz.models import Quiz
from tests.test_fixtures import TestFixtures


class TestIconSelection(unittest.TestCase):
    """Test cases for choosing an icon from the quiz title."""

    def test_keywords_match_case_insensitively(self):
        self.assertEqual(icon_name_for("Mathematics"), "mathIcon")
        self.assertEqual(icon_name_for("MARVEL Super Heroes"), "marvelIcon")
        self.assertEqual(icon_name_for("Science!"), "scienceIcon")

    def test_substring_match(self):
        self.assertEqual(icon_name_for("Applied aftermath"), "mathIcon")
        self.assertEqual(icon_name_for("Computer sciences"), "scienceIcon")

    def test_first_match_wins(self):
        """Test math -> marvel -> science ordering."""
        self.assertEqual(icon_name_for("Science of Marvel math"), "mathIcon")
        self.assertEqual(icon_name_for("Marvel science"), "marvelIcon")

    def test_unmatched_titles_get_placeholder(self):
        for title in ("History", "", "Geography 101"):
            with self.subTest(title=title):
                self.assertEqual(icon_name_for(title), GENERIC_ICON)


class TestCatalogDecoding(unittest.TestCase):
    """Test cases for decoding and mapping downloaded catalogs."""

    def test_decode_valid_catalog(self):
        remote = decode_remote_quizzes(TestFixtures.create_remote_catalog_bytes())

        self.assertEqual([rq.title for rq in remote], ["Science!", "Marvel Super Heroes", "Mathematics"])
        self.assertEqual(remote[1].desc, "Avengers, Assemble!")
        self.assertEqual(remote[1].questions[1].answer, "2")
        self.assertEqual(remote[1].questions[1].answer_index, 1)

    def test_decode_empty_array(self):
        self.assertEqual(decode_remote_quizzes(b"[]"), [])

    def test_extra_keys_ignored(self):
        raw = json.dumps([{
            "title": "T", "desc": "D", "extra": True,
            "questions": [{"text": "Q", "answers": ["a"], "answer": "1", "hint": "none"}]
        }]).encode()
        self.assertEqual(len(decode_remote_quizzes(raw)), 1)

    def test_decode_invalid_catalogs(self):
        """Test that every malformed body raises QuizDecodeError."""
        for raw in TestFixtures.create_invalid_catalogs():
            with self.subTest(raw=raw):
                with self.assertRaises(QuizDecodeError):
                    decode_remote_quizzes(raw)

    def test_decode_error_names_the_field(self):
        raw = json.dumps([{"title": "T", "desc": "D", "questions": [{"text": "Q", "answers": ["a"]}]}]).encode()
        with self.assertRaises(QuizDecodeError) as ctx:
            decode_remote_quizzes(raw)
        self.assertIn("answer", str(ctx.exception))
        self.assertIn("Quiz 0 question 0", str(ctx.exception))

    def test_decode_error_is_store_error(self):
        self.assertTrue(issubclass(QuizDecodeError, QuizStoreError))

    def test_map_remote_quizzes(self):
        quizzes = map_remote_quizzes(decode_remote_quizzes(TestFixtures.create_remote_catalog_bytes()))

        self.assertEqual(len(quizzes), 3)
        self.assertTrue(all(isinstance(quiz, Quiz) for quiz in quizzes))
        self.assertEqual(
            [quiz.icon_name for quiz in quizzes],
            ["scienceIcon", "marvelIcon", "mathIcon"]
        )

        marvel = quizzes[1]
        self.assertEqual(marvel.description, "Avengers, Assemble!")
        self.assertEqual(marvel.questions[0].options[0], "Tony Stark")
        self.assertEqual([q.correct_index for q in marvel.questions], [0, 1])

    def test_map_keeps_out_of_range_answer(self):
        raw = json.dumps([{
            "title": "T", "desc": "D",
            "questions": [{"text": "Q", "answers": ["a", "b"], "answer": "7"}]
        }]).encode()
        quiz = map_remote_quizzes(decode_remote_quizzes(raw))[0]
        self.assertEqual(quiz.questions[0].correct_index, 6)


class TestDataManagerCache(unittest.TestCase):
    """Test cases for the cache file."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.cache_path = Path(self.temp_dir) / "nested" / "quizzes_cache.json"
        self.data_manager = DataManager(str(self.cache_path))

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_read_missing_cache_returns_none(self):
        self.assertIsNone(self.data_manager.read_cache())
        self.assertFalse(self.data_manager.has_cache())

    def test_write_creates_directory_and_stores_bytes_verbatim(self):
        raw = TestFixtures.create_remote_catalog_bytes()

        self.assertTrue(self.data_manager.write_cache(raw))

        self.assertTrue(self.data_manager.has_cache())
        self.assertEqual(self.cache_path.read_bytes(), raw)
        self.assertEqual(self.data_manager.read_cache(), raw)

    def test_write_overwrites_previous_cache(self):
        self.data_manager.write_cache(TestFixtures.create_remote_catalog_bytes())
        alternate = TestFixtures.create_alternate_catalog_bytes()

        self.data_manager.write_cache(alternate)

        self.assertEqual(self.data_manager.read_cache(), alternate)

    def test_write_leaves_no_temporary_files(self):
        self.data_manager.write_cache(b"[]")
        self.data_manager.write_cache(b"[ ]")
        self.assertEqual(os.listdir(self.cache_path.parent), [self.cache_path.name])

    def test_failed_write_keeps_previous_cache(self):
        """Test that a failing rename leaves the old cache and no temp file behind."""
        original = TestFixtures.create_remote_catalog_bytes()
        self.data_manager.write_cache(original)

        with patch('iquiz.data_manager.os.replace', side_effect=OSError("disk full")):
            self.assertFalse(self.data_manager.write_cache(b"[]"))

        self.assertEqual(self.data_manager.read_cache(), original)
        self.assertEqual(os.listdir(self.cache_path.parent), [self.cache_path.name])

    def test_unreadable_cache_returns_none(self):
        self.data_manager.write_cache(b"[]")
        with patch.object(Path, 'read_bytes', side_effect=PermissionError("denied")):
            self.assertIsNone(self.data_manager.read_cache())

    def test_cache_round_trip_matches_network_mapping(self):
        """Test that cached bytes decode to the same quizzes as the original body."""
        raw = TestFixtures.create_remote_catalog_bytes()
        published = self.data_manager.decode_quizzes(raw)

        self.data_manager.write_cache(raw)
        restored = self.data_manager.decode_quizzes(self.data_manager.read_cache())

        self.assertEqual(restored, published)

    def test_clear_cache(self):
        self.assertFalse(self.data_manager.clear_cache())
        self.data_manager.write_cache(b"[]")
        self.assertTrue(self.data_manager.clear_cache())
        self.assertFalse(self.data_manager.has_cache())

    def test_cache_summary(self):
        summary = self.data_manager.get_cache_summary()
        self.assertFalse(summary['exists'])
        self.assertEqual(summary['cache_path'], str(self.cache_path))

        self.data_manager.write_cache(b"[]")
        summary = self.data_manager.get_cache_summary()
        self.assertTrue(summary['exists'])
        self.assertEqual(summary['size_bytes'], 2)
        self.assertIsNotNone(summary['modified'])


if __name__ == '__main__':
    unittest.main()
