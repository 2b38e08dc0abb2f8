"""
Core data models for the Trivia Quiz Bot.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Difficulty(Enum):
    """Difficulty levels accepted by the trivia provider."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Page(Enum):
    """Screens a channel can be on during a play-through."""
    INTRO = "intro"
    QUESTION = "question"
    ANSWER = "answer"
    OUTRO = "outro"


@dataclass
class Question:
    """A normalized multiple-choice question."""
    text: str
    answers: List[str]
    correct_answer: str
    category: Optional[str] = None
    difficulty: Optional[str] = None


@dataclass
class Category:
    """A trivia category as listed by the provider."""
    id: int
    name: str


@dataclass
class QuizOptions:
    """Options chosen before a game starts; fixed for the game's duration."""
    category: Optional[int] = None
    difficulty: Difficulty = Difficulty.EASY
    question_count: int = 5


@dataclass
class QuizState:
    """Where a channel currently is in the quiz."""
    page: Page = Page.INTRO
    current_question_index: Optional[int] = None
    user_answers: List[str] = field(default_factory=list)
    feedback: Optional[str] = None
    busy: bool = False

    @classmethod
    def initial(cls) -> "QuizState":
        return cls()


@dataclass
class ErrorRecord:
    """Last error surfaced to the user."""
    kind: str
    message: str
    detail: str = ""
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class QuizResult:
    """Final score of a finished play-through."""
    score: int
    total: int
    finished_at: datetime = field(default_factory=datetime.now)
