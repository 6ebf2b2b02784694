"""
Navigation and notification hooks raised by quiz sessions.
"""
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .models import StoredResult


@dataclass(frozen=True)
class Notification:
    """A short user-facing message."""
    title: str
    description: str = ""
    destructive: bool = False


class SessionListener(ABC):
    """Receives the navigation requests and notifications of a session."""

    @abstractmethod
    async def redirect_to_fallback(self, quiz_id: Optional[str], reason: str) -> None:
        """Leave the quiz because it cannot be taken."""

    @abstractmethod
    async def redirect_to_results(self, stored_result: StoredResult) -> None:
        """Show the results of a persisted attempt."""

    @abstractmethod
    async def notify(self, notification: Notification) -> None:
        """Show a notification to the user."""


class LoggingSessionListener(SessionListener):
    """Listener that only writes what it receives to the log."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    async def redirect_to_fallback(self, quiz_id: Optional[str], reason: str) -> None:
        self.logger.info(
            f"Redirecting to fallback from quiz {quiz_id}: {reason}",
            extra={
                'event_type': 'redirect_fallback',
                'quiz_id': quiz_id,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    async def redirect_to_results(self, stored_result: StoredResult) -> None:
        self.logger.info(
            f"Redirecting to results {stored_result.id} for user {stored_result.user_id}",
            extra={
                'event_type': 'redirect_results',
                'result_id': stored_result.id,
                'user_id': stored_result.user_id,
                'timestamp': time.time()
            }
        )

    async def notify(self, notification: Notification) -> None:
        level = logging.WARNING if notification.destructive else logging.INFO
        self.logger.log(level, f"{notification.title}: {notification.description}")
