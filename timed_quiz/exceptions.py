"""
Exception hierarchy for the timed quiz engine.
"""


class QuizSessionError(Exception):
    """Base exception for quiz engine errors."""
    pass


class QuizNotFoundError(QuizSessionError):
    """Raised when a catalog operation targets a quiz that does not exist."""
    pass


class PermissionDeniedError(QuizSessionError):
    """Raised when the current user is missing or lacks the required role."""
    pass


class SubmissionError(QuizSessionError):
    """Raised when a finished attempt could not be persisted."""
    pass


class ResultStoreError(QuizSessionError):
    """Raised by result stores when an insert or read fails."""
    pass
