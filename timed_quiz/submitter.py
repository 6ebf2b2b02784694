"""
Hands finished attempts to the result store on behalf of the signed-in user.
"""
import logging
import time

from .auth import AuthProvider
from .exceptions import PermissionDeniedError, ResultStoreError, SubmissionError
from .models import QuizResult, StoredResult
from .result_store import ResultStore


class ResultSubmitter:
    """
    Persists quiz results for the current user.

    The submitter does not deduplicate; a session submits at most once
    per attempt on its own.
    """

    def __init__(self, store: ResultStore, auth: AuthProvider):
        self.logger = logging.getLogger(__name__)
        self.store = store
        self.auth = auth

    async def submit(self, result: QuizResult) -> StoredResult:
        """
        Persist a result.

        Args:
            result: Finished attempt to store

        Returns:
            The stored record

        Raises:
            PermissionDeniedError: If no user is signed in
            SubmissionError: If the store rejected the insert
        """
        user = self.auth.current_user()
        if user is None:
            self.logger.warning(f"Refusing to submit result for quiz {result.quiz_id}: no user signed in")
            raise PermissionDeniedError("User not authenticated")

        try:
            stored = await self.store.insert(result, user.id)
        except ResultStoreError as e:
            self.logger.error(
                f"Failed to store result for quiz {result.quiz_id}, user {user.id}: {e}",
                extra={
                    'event_type': 'submission_failed',
                    'quiz_id': result.quiz_id,
                    'user_id': user.id,
                    'timestamp': time.time()
                }
            )
            raise SubmissionError(f"Could not save quiz result: {e}") from e

        self.logger.info(
            f"Stored result {stored.id} for quiz {result.quiz_id}, user {user.id}: "
            f"{result.score}/{result.total_questions}",
            extra={
                'event_type': 'submission_stored',
                'quiz_id': result.quiz_id,
                'user_id': user.id,
                'result_id': stored.id,
                'timestamp': time.time()
            }
        )
        return stored
