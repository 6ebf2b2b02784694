"""
Core data models for the timed quiz engine.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


# Marks an answer slot that has not been chosen yet
UNANSWERED = -1


class Difficulty(Enum):
    """Difficulty labels a quiz can carry."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


@dataclass(frozen=True)
class Question:
    """A single multiple-choice question."""
    id: str
    text: str
    options: Tuple[str, ...]
    correct_answer: int

    def __post_init__(self):
        object.__setattr__(self, 'options', tuple(self.options))
        if len(self.options) < 2:
            raise ValueError(f"Question {self.id} must have at least two options")
        if not isinstance(self.correct_answer, int) or not 0 <= self.correct_answer < len(self.options):
            raise ValueError(
                f"Question {self.id} correct answer index {self.correct_answer} "
                f"is out of range for {len(self.options)} options"
            )


@dataclass(frozen=True)
class Quiz:
    """A quiz definition. Never mutated while a session is running."""
    id: str
    title: str
    questions: Tuple[Question, ...]
    time_limit: int
    difficulty: Difficulty = Difficulty.MEDIUM
    category: str = "General"
    is_published: bool = False
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        object.__setattr__(self, 'questions', tuple(self.questions))
        if not self.questions:
            raise ValueError(f"Quiz {self.id} must contain at least one question")
        if isinstance(self.time_limit, bool) or not isinstance(self.time_limit, int) or self.time_limit <= 0:
            raise ValueError(f"Quiz {self.id} time limit must be a positive number of seconds")
        if not isinstance(self.difficulty, Difficulty):
            object.__setattr__(self, 'difficulty', Difficulty(self.difficulty))

    @property
    def question_count(self) -> int:
        return len(self.questions)


@dataclass(frozen=True)
class QuizResult:
    """Outcome of one finished attempt."""
    quiz_id: str
    answers: Tuple[int, ...]
    score: int
    total_questions: int
    time_spent: int
    completed_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        object.__setattr__(self, 'answers', tuple(self.answers))


@dataclass(frozen=True)
class StoredResult:
    """A result as persisted by a result store."""
    id: str
    user_id: str
    result: QuizResult


@dataclass(frozen=True)
class User:
    """Authenticated user identity."""
    id: str
    username: Optional[str] = None
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
