"""
Unit tests for the iQuiz data models.
"""
import unittest

from iquiz.models import Question, Quiz, RemoteQuestion


class TestRemoteQuestionAnswerIndex(unittest.TestCase):
    """Test cases for converting the one-based answer string."""

    def _index(self, answer):
        return RemoteQuestion(text="Q?", answers=["a", "b", "c", "d"], answer=answer).answer_index

    def test_valid_answers_become_zero_based(self):
        """Test that parseable answers >= 1 map to answer - 1."""
        for answer, expected in (("1", 0), ("2", 1), ("4", 3), ("10", 9)):
            with self.subTest(answer=answer):
                self.assertEqual(self._index(answer), expected)

    def test_unparseable_answers_default_to_first_option(self):
        """Test that unparseable answers fall back to index 0."""
        for answer in ("", "one", "1.5", "A", None):
            with self.subTest(answer=answer):
                self.assertEqual(self._index(answer), 0)

    def test_zero_and_negative_answers_clamp_at_zero(self):
        """Test the lower clamp."""
        self.assertEqual(self._index("0"), 0)
        self.assertEqual(self._index("-3"), 0)

    def test_only_plain_ascii_digits_are_parsed(self):
        """Test that whitespace, underscores and other digit scripts are unparseable."""
        for answer in (" 3 ", " 2", "3\n", "1_0", "\u0663", "\uff12", "+ 2"):
            with self.subTest(answer=answer):
                self.assertEqual(self._index(answer), 0)

    def test_signed_answers(self):
        self.assertEqual(self._index("+2"), 1)
        self.assertEqual(self._index("-1"), 0)

    def test_no_upper_clamp(self):
        """Test that an answer past the last option is kept as delivered."""
        self.assertEqual(self._index("9"), 8)


class TestQuestion(unittest.TestCase):
    """Test cases for the local Question model."""

    def test_valid_question(self):
        question = Question("What is 2+2?", ["3", "4"], 1)
        self.assertEqual(question.options, ("3", "4"))
        self.assertTrue(question.has_valid_answer())

    def test_out_of_range_correct_index_rejected(self):
        """Test the correct_index invariant on direct construction."""
        with self.assertRaises(ValueError):
            Question("What is 2+2?", ["3", "4"], 2)
        with self.assertRaises(ValueError):
            Question("What is 2+2?", ["3", "4"], -1)

    def test_from_wire_keeps_out_of_range_index(self):
        question = Question.from_wire("Q?", ["a", "b"], 5)
        self.assertEqual(question.correct_index, 5)
        self.assertFalse(question.has_valid_answer())

    def test_ids_are_unique(self):
        first = Question("Q?", ["a"], 0)
        second = Question("Q?", ["a"], 0)
        self.assertNotEqual(first.id, second.id)
        self.assertNotEqual(Question.from_wire("Q?", ["a"], 0).id, Question.from_wire("Q?", ["a"], 0).id)

    def test_equality_ignores_id(self):
        self.assertEqual(Question("Q?", ["a"], 0), Question.from_wire("Q?", ["a"], 0))

    def test_question_is_immutable(self):
        question = Question("Q?", ["a"], 0)
        with self.assertRaises(AttributeError):
            question.text = "Changed"


class TestQuiz(unittest.TestCase):
    """Test cases for the local Quiz model."""

    def test_questions_stored_as_tuple(self):
        quiz = Quiz("Math", "Numbers", "mathIcon", [Question("Q?", ["a"], 0)])
        self.assertIsInstance(quiz.questions, tuple)
        self.assertEqual(quiz.question_count, 1)

    def test_quiz_is_immutable(self):
        quiz = Quiz("Math", "Numbers", "mathIcon")
        with self.assertRaises(AttributeError):
            quiz.title = "Other"


if __name__ == '__main__':
    unittest.main()
