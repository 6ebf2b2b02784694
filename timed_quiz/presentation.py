"""
Display helpers derived from session state.

Nothing here is stored on the session; every value is recomputed from it.
"""
from enum import Enum

from .scoring import score_percentage
from .session import QuizSession


DEFAULT_WARNING_SECONDS = 60
DEFAULT_CRITICAL_SECONDS = 30
DEFAULT_CELEBRATION_PERCENT = 80


class TimeColor(Enum):
    """Urgency level of the remaining time."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


def format_time(seconds: int) -> str:
    """Format seconds as M:SS."""
    minutes, remaining_seconds = divmod(max(int(seconds), 0), 60)
    return f"{minutes}:{remaining_seconds:02d}"


def time_color(
    remaining: int,
    warning_seconds: int = DEFAULT_WARNING_SECONDS,
    critical_seconds: int = DEFAULT_CRITICAL_SECONDS
) -> TimeColor:
    if remaining > warning_seconds:
        return TimeColor.GREEN
    if remaining > critical_seconds:
        return TimeColor.YELLOW
    return TimeColor.RED


def progress_percent(session: QuizSession) -> float:
    """Position of the current question as a percentage of the quiz."""
    if session.quiz is None:
        return 0.0
    return ((session.current_index + 1) / session.quiz.question_count) * 100


def is_celebration(score: int, total: int, threshold: float = DEFAULT_CELEBRATION_PERCENT) -> bool:
    """Whether a score is high enough to be celebrated."""
    return total > 0 and score_percentage(score, total) >= threshold
