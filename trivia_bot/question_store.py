"""
Question store for the Trivia Quiz Bot.
Holds the questions fetched during the current game, in the order they were asked.
"""
import logging
from typing import Iterator, List, Optional

from .models import Question


class QuestionStore:
    """Append-only sequence of questions for one game."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._questions: List[Question] = []

    def append(self, question: Question) -> None:
        """
        Add a question to the end of the store.

        Args:
            question: Normalized question to store

        Raises:
            ValueError: If the correct answer is not among the answers
        """
        if question.correct_answer not in question.answers:
            raise ValueError("Correct answer must be one of the question's answers")
        self._questions.append(question)
        self.logger.debug(f"Stored question {len(self._questions)}: {question.text[:50]}")

    def get(self, index: Optional[int]) -> Optional[Question]:
        """Return the question at index, or None if there is none."""
        if index is None or index < 0 or index >= len(self._questions):
            return None
        return self._questions[index]

    def clear(self) -> None:
        """Drop every stored question."""
        self._questions.clear()

    @property
    def questions(self) -> List[Question]:
        return list(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(list(self._questions))
