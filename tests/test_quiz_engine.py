"""
Unit tests for the QuizEngine class and the QuestionStore.
"""
import unittest

from trivia_bot.models import Page, Question, QuizState
from trivia_bot.question_store import QuestionStore
from trivia_bot.quiz_engine import CORRECT_FEEDBACK, QuizEngine
from tests.test_fixtures import TestFixtures


class TestQuizEngine(unittest.TestCase):
    """Test cases for scoring, progress and feedback."""

    def setUp(self):
        """Set up test fixtures."""
        self.engine = QuizEngine()
        self.questions = TestFixtures.create_sample_questions()
        self.options = TestFixtures.create_quiz_options(question_count=3)

    def test_calculate_score_counts_matching_answers(self):
        user_answers = ["London", "5", "Jupiter"]

        self.assertEqual(self.engine.calculate_score(user_answers, self.questions), 2)

    def test_calculate_score_partial_game(self):
        """Test that only answered questions are scored."""
        self.assertEqual(self.engine.calculate_score(["London"], self.questions), 1)
        self.assertEqual(self.engine.calculate_score([], self.questions), 0)

    def test_calculate_score_matches_definition(self):
        """Test the score against its definition for every answered prefix."""
        user_answers = ["Paris", "4", "Jupiter"]
        for answered in range(len(user_answers) + 1):
            expected = len([
                i for i in range(answered)
                if user_answers[i] == self.questions[i].correct_answer
            ])
            self.assertEqual(
                self.engine.calculate_score(user_answers[:answered], self.questions),
                expected
            )

    def test_calculate_score_is_exact_match(self):
        question = Question("Q?", ["a&amp;b", "c"], "a&amp;b")
        self.assertEqual(self.engine.calculate_score(["a&b"], [question]), 0)
        self.assertEqual(self.engine.calculate_score(["a&amp;b"], [question]), 1)

    def test_calculate_score_idempotent(self):
        user_answers = ["London", "4"]
        first = self.engine.calculate_score(user_answers, self.questions)
        second = self.engine.calculate_score(user_answers, self.questions)
        self.assertEqual(first, second)

    def test_progress_before_game(self):
        progress = self.engine.get_progress(QuizState.initial(), self.options)
        self.assertEqual(progress, {'current': 0, 'total': 3})

    def test_progress_during_game(self):
        state = QuizState(page=Page.QUESTION, current_question_index=1)

        progress = self.engine.get_progress(state, self.options)

        self.assertEqual(progress, {'current': 2, 'total': 3})
        self.assertEqual(progress, self.engine.get_progress(state, self.options))

    def test_feedback_correct(self):
        question = TestFixtures.create_england_question()
        self.assertEqual(self.engine.build_feedback(question, "London"), CORRECT_FEEDBACK)
        self.assertEqual(CORRECT_FEEDBACK, "You got it!")

    def test_feedback_incorrect_names_correct_answer(self):
        question = TestFixtures.create_england_question()

        feedback = self.engine.build_feedback(question, "Paris")

        self.assertIn("London", feedback)
        self.assertNotEqual(feedback, CORRECT_FEEDBACK)

    def test_is_last_question(self):
        self.assertFalse(self.engine.is_last_question(QuizState.initial(), self.options))
        self.assertFalse(self.engine.is_last_question(QuizState(current_question_index=1), self.options))
        self.assertTrue(self.engine.is_last_question(QuizState(current_question_index=2), self.options))


class TestQuestionStore(unittest.TestCase):
    """Test cases for the append-only question store."""

    def setUp(self):
        self.store = QuestionStore()

    def test_append_and_get(self):
        for question in TestFixtures.create_sample_questions():
            self.store.append(question)

        self.assertEqual(len(self.store), 3)
        self.assertEqual(self.store.get(0).correct_answer, "London")
        self.assertEqual(self.store.get(2).correct_answer, "Jupiter")
        self.assertEqual([q.text for q in self.store], [q.text for q in self.store.questions])

    def test_get_out_of_range(self):
        self.store.append(TestFixtures.create_england_question())

        self.assertIsNone(self.store.get(None))
        self.assertIsNone(self.store.get(-1))
        self.assertIsNone(self.store.get(1))

    def test_clear(self):
        self.store.append(TestFixtures.create_england_question())
        self.store.clear()
        self.assertEqual(len(self.store), 0)

    def test_rejects_question_without_correct_answer_in_answers(self):
        with self.assertRaises(ValueError):
            self.store.append(Question("Q?", ["a", "b"], "c"))
        self.assertEqual(len(self.store), 0)

    def test_questions_property_is_a_copy(self):
        self.store.append(TestFixtures.create_england_question())
        self.store.questions.clear()
        self.assertEqual(len(self.store), 1)


if __name__ == '__main__':
    unittest.main()
