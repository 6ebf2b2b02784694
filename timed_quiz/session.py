"""
Quiz session state machine.
Drives one user through a timed attempt: navigation, answer capture,
countdown, and the single submission of the finished attempt.
"""
import logging
import time
import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from .catalog import QuizCatalog
from .countdown import CountdownHandle, CountdownTimer
from .events import Notification, SessionListener
from .exceptions import PermissionDeniedError, QuizSessionError, SubmissionError
from .models import UNANSWERED, Question, Quiz, QuizResult, StoredResult
from .scoring import calculate_score
from .submitter import ResultSubmitter


class SessionState(Enum):
    """Enumeration of possible quiz session states."""
    LOADING = "loading"
    READY = "ready"
    ACTIVE = "active"
    FINISHING = "finishing"
    FINISHED = "finished"
    SUBMIT_FAILED = "submit_failed"
    REJECTED = "rejected"
    CLOSED = "closed"


NOT_FOUND_NOTIFICATION = Notification(
    title="Quiz not found",
    description="The quiz you're looking for doesn't exist or isn't published.",
    destructive=True
)
SUBMIT_ERROR_NOTIFICATION = Notification(
    title="Error submitting quiz",
    description="Please try again.",
    destructive=True
)
SIGN_IN_REQUIRED_NOTIFICATION = Notification(
    title="Sign in required",
    description="You must be signed in to save your quiz result.",
    destructive=True
)


class QuizSession:
    """
    A single timed attempt at a quiz.

    The session moves LOADING -> READY -> ACTIVE -> FINISHING -> FINISHED.
    FINISHING doubles as the submission guard: while it holds, further
    finish() calls and all answer or navigation calls are no-ops, so the
    countdown timeout and a manual finish can never both submit.

    Calls made from the wrong state are logged and ignored.
    """

    def __init__(
        self,
        submitter: ResultSubmitter,
        listener: SessionListener,
        countdown: Optional[CountdownTimer] = None,
        session_id: Optional[str] = None
    ):
        """
        Initialize the session.

        Args:
            submitter: Persists the finished attempt
            listener: Receives navigation requests and notifications
            countdown: Tick source, a one-second CountdownTimer if None
            session_id: Identifier used in log records, generated if None
        """
        self.logger = logging.getLogger(__name__)
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self._submitter = submitter
        self._listener = listener
        self._countdown = countdown or CountdownTimer()
        self._handle: Optional[CountdownHandle] = None

        self._state = SessionState.LOADING
        self._quiz: Optional[Quiz] = None
        self._answers: List[int] = []
        self._current_index = 0
        self._remaining = 0
        self._pending_result: Optional[QuizResult] = None
        self._result: Optional[QuizResult] = None
        self._stored_result: Optional[StoredResult] = None
        self._closed = False

    # Read-only views

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def quiz(self) -> Optional[Quiz]:
        return self._quiz

    @property
    def answers(self) -> Tuple[int, ...]:
        return tuple(self._answers)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def is_submitting(self) -> bool:
        return self._state is SessionState.FINISHING

    @property
    def current_question(self) -> Optional[Question]:
        if self._quiz is None:
            return None
        return self._quiz.questions[self._current_index]

    @property
    def is_last_question(self) -> bool:
        return self._quiz is not None and self._current_index == self._quiz.question_count - 1

    @property
    def result(self) -> Optional[QuizResult]:
        """The persisted result of the last attempt, if any."""
        return self._result

    @property
    def stored_result(self) -> Optional[StoredResult]:
        return self._stored_result

    # Lifecycle

    async def load(self, catalog: QuizCatalog, quiz_id: str) -> bool:
        """
        Look a quiz up in the catalog and initialize the session with it.

        Args:
            catalog: Catalog to read from
            quiz_id: Identifier of the quiz to attempt

        Returns:
            True if the session is ready to start, False otherwise
        """
        if self._state is not SessionState.LOADING:
            self._warn_ignored("load")
            return False

        try:
            quiz = await catalog.get_by_id(quiz_id)
        except (QuizSessionError, OSError) as e:
            self.logger.error(f"Session {self.session_id}: failed to look up quiz {quiz_id}: {e}")
            quiz = None

        if self._state is not SessionState.LOADING:
            self.logger.info(f"Session {self.session_id}: {self._state.value} while loading quiz {quiz_id}, discarding lookup")
            return False

        if quiz is None:
            await self._reject(quiz_id, "not_found")
            return False

        return await self.initialize(quiz)

    async def initialize(self, quiz: Optional[Quiz]) -> bool:
        """
        Bind the session to a quiz.

        An absent or unpublished quiz rejects the session and redirects
        the user to the fallback destination.

        Returns:
            True if the session is ready to start, False otherwise
        """
        if self._state is not SessionState.LOADING:
            self._warn_ignored("initialize")
            return False

        if quiz is None:
            await self._reject(None, "not_found")
            return False

        if not quiz.is_published:
            await self._reject(quiz.id, "unpublished")
            return False

        self._quiz = quiz
        self._reset_attempt()
        self._transition(SessionState.READY)
        return True

    def start(self) -> bool:
        """
        Begin the attempt and the countdown.

        Valid from READY, or from FINISHED to retake the quiz from scratch.
        Must be called from inside a running event loop.

        Returns:
            True if the session is now active
        """
        if self._state not in (SessionState.READY, SessionState.FINISHED):
            self._warn_ignored("start")
            return False

        self._stop_countdown("restart")
        self._handle = self._countdown.start(self.session_id, self.tick, self.finish)

        retake = self._state is SessionState.FINISHED
        self._reset_attempt()
        self._transition(SessionState.ACTIVE)

        self.logger.info(
            f"Session {self.session_id}: {'retake' if retake else 'start'} of quiz {self._quiz.id}, "
            f"{self._quiz.question_count} questions, {self._remaining}s",
            extra={
                'event_type': 'session_start',
                'session_id': self.session_id,
                'quiz_id': self._quiz.id,
                'retake': retake,
                'timestamp': time.time()
            }
        )
        return True

    def close(self) -> bool:
        """
        Tear the session down.

        Stops the countdown. A submission already in flight still completes
        and is persisted, after which the session closes without navigating.

        Returns:
            True if the session was closed or will close once submission ends
        """
        if self._state in (SessionState.CLOSED, SessionState.REJECTED) or self._closed:
            return False

        self._closed = True
        self._stop_countdown("close")

        if self._state is SessionState.FINISHING:
            self.logger.info(f"Session {self.session_id}: close requested during submission, deferring")
            return True

        self._transition(SessionState.CLOSED)
        return True

    # Attempt operations

    def answer(self, option_index: int) -> bool:
        """
        Record the chosen option for the current question, replacing any earlier choice.

        Returns:
            True if the answer was recorded
        """
        if self._state is not SessionState.ACTIVE:
            self._warn_ignored("answer")
            return False

        question = self.current_question
        if (isinstance(option_index, bool) or not isinstance(option_index, int)
                or not 0 <= option_index < len(question.options)):
            self.logger.warning(
                f"Session {self.session_id}: option {option_index!r} out of range "
                f"for question {question.id} with {len(question.options)} options"
            )
            return False

        self._answers[self._current_index] = option_index
        return True

    def next(self) -> bool:
        """Move to the next question. Returns whether the pointer moved."""
        if self._state is not SessionState.ACTIVE:
            self._warn_ignored("next")
            return False
        if self._current_index >= self._quiz.question_count - 1:
            return False
        self._current_index += 1
        return True

    def previous(self) -> bool:
        """Move to the previous question. Returns whether the pointer moved."""
        if self._state is not SessionState.ACTIVE:
            self._warn_ignored("previous")
            return False
        if self._current_index <= 0:
            return False
        self._current_index -= 1
        return True

    def tick(self) -> bool:
        """
        Advance the countdown by one second.

        Returns:
            True when this tick used up the remaining time
        """
        if self._state is not SessionState.ACTIVE or self._remaining <= 0:
            return False
        self._remaining = max(self._remaining - 1, 0)
        return self._remaining == 0

    async def finish(self) -> Optional[QuizResult]:
        """
        Score the attempt and submit it once.

        Called by the user or by the countdown on timeout. Only the first
        caller to reach the guard submits; later calls return None. After a
        failed submission the same result can be submitted again by calling
        finish() once more.

        Returns:
            The persisted result, or None if nothing was persisted
        """
        if self._state not in (SessionState.ACTIVE, SessionState.SUBMIT_FAILED):
            self._warn_ignored("finish")
            return None

        self._transition(SessionState.FINISHING)
        self._stop_countdown("finish")

        if self._pending_result is None:
            self._pending_result = self._build_result()
        result = self._pending_result

        try:
            stored = await self._submitter.submit(result)
        except PermissionDeniedError as e:
            self.logger.warning(f"Session {self.session_id}: submission refused: {e}")
            await self._submission_failed(SIGN_IN_REQUIRED_NOTIFICATION)
            return None
        except SubmissionError as e:
            self.logger.error(f"Session {self.session_id}: submission failed: {e}")
            await self._submission_failed(SUBMIT_ERROR_NOTIFICATION)
            return None
        except BaseException:
            # Unexpected errors and cancellation still release the guard
            self._pending_failure_state()
            raise

        self._pending_result = None
        self._result = result
        self._stored_result = stored

        if self._closed:
            self._transition(SessionState.CLOSED)
            return result

        self._transition(SessionState.FINISHED)
        await self._listener.notify(Notification(
            title="Quiz completed!",
            description=f"You scored {result.score}/{result.total_questions}"
        ))
        await self._listener.redirect_to_results(stored)
        return result

    # Internals

    def _build_result(self) -> QuizResult:
        score = calculate_score(self._quiz.questions, self._answers)
        return QuizResult(
            quiz_id=self._quiz.id,
            answers=tuple(self._answers),
            score=score,
            total_questions=self._quiz.question_count,
            time_spent=self._quiz.time_limit - self._remaining,
            completed_at=datetime.now()
        )

    def _reset_attempt(self) -> None:
        self._answers = [UNANSWERED] * self._quiz.question_count
        self._current_index = 0
        self._remaining = self._quiz.time_limit
        self._pending_result = None
        self._result = None
        self._stored_result = None

    def _stop_countdown(self, reason: str) -> None:
        if self._handle is not None:
            self._countdown.stop(self._handle, reason)
            self._handle = None

    def _pending_failure_state(self) -> None:
        self._transition(SessionState.CLOSED if self._closed else SessionState.SUBMIT_FAILED)

    async def _submission_failed(self, notification: Notification) -> None:
        self._pending_failure_state()
        if self._closed:
            self.logger.error(
                f"Session {self.session_id}: result for quiz {self._quiz.id} was not saved before close"
            )
            return
        await self._listener.notify(notification)

    async def _reject(self, quiz_id: Optional[str], reason: str) -> None:
        self._transition(SessionState.REJECTED)
        await self._listener.notify(NOT_FOUND_NOTIFICATION)
        await self._listener.redirect_to_fallback(quiz_id, reason)

    def _transition(self, new_state: SessionState) -> None:
        old_state = self._state
        self._state = new_state
        self.logger.info(
            f"Session {self.session_id}: {old_state.value} -> {new_state.value}",
            extra={
                'event_type': 'session_transition',
                'session_id': self.session_id,
                'from_state': old_state.value,
                'to_state': new_state.value,
                'timestamp': time.time()
            }
        )

    def _warn_ignored(self, operation: str) -> None:
        self.logger.warning(
            f"Session {self.session_id}: ignoring {operation} in state {self._state.value}"
        )
