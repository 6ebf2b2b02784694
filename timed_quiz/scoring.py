"""
Scoring for finished quiz attempts.
"""
from typing import Sequence

from .models import Question


def calculate_score(questions: Sequence[Question], answers: Sequence[int]) -> int:
    """
    Count the answers that match the correct option of their question.

    Args:
        questions: Questions of the quiz, in order
        answers: Chosen option index per question, UNANSWERED for skipped ones

    Returns:
        Number of correctly answered questions
    """
    return sum(
        1 for question, answer in zip(questions, answers)
        if answer == question.correct_answer
    )


def score_percentage(score: int, total: int) -> float:
    """Score as a percentage of the question count, 0 for an empty quiz."""
    if total <= 0:
        return 0.0
    return (score / total) * 100
