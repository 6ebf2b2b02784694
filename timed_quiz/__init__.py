"""
Timed multiple-choice quiz session engine.
"""
from .auth import AuthProvider, StaticAuthProvider
from .catalog import CatalogManager, InMemoryQuizCatalog, JsonQuizCatalog, QuizCatalog
from .countdown import CountdownHandle, CountdownTimer
from .engine import QuizEngine
from .events import LoggingSessionListener, Notification, SessionListener
from .exceptions import (
    PermissionDeniedError,
    QuizNotFoundError,
    QuizSessionError,
    ResultStoreError,
    SubmissionError,
)
from .models import UNANSWERED, Difficulty, Question, Quiz, QuizResult, StoredResult, User
from .result_store import InMemoryResultStore, JsonResultStore, ResultStore
from .scoring import calculate_score, score_percentage
from .session import QuizSession, SessionState
from .submitter import ResultSubmitter

__version__ = "0.1.0"
