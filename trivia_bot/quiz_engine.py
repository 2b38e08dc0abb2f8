"""
Quiz engine core logic for the Trivia Quiz Bot.
Handles answer checking, scoring, progress and feedback. Nothing here mutates state.
"""
from typing import Dict, Iterable, List, Optional

from .models import Question, QuizOptions, QuizState


CORRECT_FEEDBACK = "You got it!"
INCORRECT_FEEDBACK = "Too bad! The correct answer was: {correct_answer}"


class QuizEngine:
    """Derived values computed from quiz state and stored questions."""

    def is_correct(self, question: Question, answer: str) -> bool:
        """Exact comparison against the stored correct answer."""
        return answer == question.correct_answer

    def calculate_score(self, user_answers: List[str], questions: Iterable[Question]) -> int:
        """
        Count answers that match the correct answer of the same-index question.

        Args:
            user_answers: Answers in the order they were given
            questions: Questions in the order they were asked

        Returns:
            Number of correct answers
        """
        return sum(
            1 for answer, question in zip(user_answers, questions)
            if self.is_correct(question, answer)
        )

    def get_progress(self, state: QuizState, options: QuizOptions) -> Dict[str, int]:
        """
        Get 1-based progress through the current game.

        Returns:
            Dictionary with 'current' and 'total'; 'current' is 0 before a game starts
        """
        if state.current_question_index is None:
            current = 0
        else:
            current = state.current_question_index + 1
        return {'current': current, 'total': options.question_count}

    def build_feedback(self, question: Question, answer: str) -> str:
        if self.is_correct(question, answer):
            return CORRECT_FEEDBACK
        return INCORRECT_FEEDBACK.format(correct_answer=question.correct_answer)

    def is_last_question(self, state: QuizState, options: QuizOptions) -> bool:
        index: Optional[int] = state.current_question_index
        return index is not None and index >= options.question_count - 1
