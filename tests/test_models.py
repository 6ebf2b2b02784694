"""
Unit tests for the quiz data models.
"""
import dataclasses
import unittest

from timed_quiz.models import Difficulty, Question, Quiz, QuizResult, User
from tests.test_fixtures import TestFixtures


class TestQuestion(unittest.TestCase):
    """Test cases for Question validation."""

    def test_valid_question(self):
        question = Question(id="q1", text="2 + 2?", options=["3", "4"], correct_answer=1)

        self.assertEqual(question.options, ("3", "4"))
        self.assertEqual(question.correct_answer, 1)

    def test_requires_two_options(self):
        with self.assertRaises(ValueError):
            Question(id="q1", text="Only one?", options=("yes",), correct_answer=0)

    def test_correct_answer_must_be_in_range(self):
        with self.assertRaises(ValueError):
            Question(id="q1", text="Which?", options=("a", "b"), correct_answer=2)
        with self.assertRaises(ValueError):
            Question(id="q1", text="Which?", options=("a", "b"), correct_answer=-1)

    def test_question_is_immutable(self):
        question = TestFixtures.create_sample_questions()[0]
        with self.assertRaises(dataclasses.FrozenInstanceError):
            question.correct_answer = 2


class TestQuiz(unittest.TestCase):
    """Test cases for Quiz validation and defaults."""

    def test_sample_quiz(self):
        quiz = TestFixtures.create_sample_quiz()

        self.assertEqual(quiz.question_count, 3)
        self.assertIsInstance(quiz.questions, tuple)
        self.assertTrue(quiz.is_published)

    def test_defaults(self):
        quiz = Quiz(id="q", title="Quiz", questions=TestFixtures.create_sample_questions(), time_limit=30)

        self.assertEqual(quiz.difficulty, Difficulty.MEDIUM)
        self.assertEqual(quiz.category, "General")
        self.assertFalse(quiz.is_published)
        self.assertIsNone(quiz.description)

    def test_difficulty_string_is_converted(self):
        quiz = Quiz(id="q", title="Quiz", questions=TestFixtures.create_sample_questions(),
                    time_limit=30, difficulty="Hard")

        self.assertEqual(quiz.difficulty, Difficulty.HARD)

    def test_unknown_difficulty_is_rejected(self):
        with self.assertRaises(ValueError):
            Quiz(id="q", title="Quiz", questions=TestFixtures.create_sample_questions(),
                 time_limit=30, difficulty="Extreme")

    def test_requires_questions(self):
        with self.assertRaises(ValueError):
            Quiz(id="q", title="Quiz", questions=(), time_limit=30)

    def test_requires_positive_time_limit(self):
        questions = TestFixtures.create_sample_questions()
        for time_limit in (0, -5, 1.5, True):
            with self.subTest(time_limit=time_limit):
                with self.assertRaises(ValueError):
                    Quiz(id="q", title="Quiz", questions=questions, time_limit=time_limit)

    def test_quiz_is_immutable(self):
        quiz = TestFixtures.create_sample_quiz()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            quiz.time_limit = 10


class TestResultAndUser(unittest.TestCase):

    def test_result_answers_become_tuple(self):
        result = QuizResult(quiz_id="q", answers=[1, -1], score=1, total_questions=2, time_spent=10)
        self.assertEqual(result.answers, (1, -1))

    def test_user_roles(self):
        self.assertFalse(User(id="u").is_admin)
        self.assertTrue(User(id="a", role="admin").is_admin)


if __name__ == '__main__':
    unittest.main()
