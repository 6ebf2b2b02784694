"""
Quiz engine wiring.
Builds catalogs, result stores, listeners and sessions from EngineSettings.
"""
import logging
import time
from typing import Optional

import discord

from .auth import AuthProvider
from .catalog import CatalogManager, JsonQuizCatalog
from .config_manager import ConfigManager, EngineSettings
from .countdown import CountdownTimer
from .discord_notifier import DiscordSessionListener
from .events import LoggingSessionListener, SessionListener
from .models import QuizResult
from .presentation import TimeColor, is_celebration, time_color
from .result_store import JsonResultStore
from .session import QuizSession
from .submitter import ResultSubmitter


class QuizEngine:
    """
    Owns the file-backed collaborators shared by every session and creates
    sessions configured from the current settings.
    """

    def __init__(self, auth: AuthProvider, config_manager: Optional[ConfigManager] = None):
        self.logger = logging.getLogger(__name__)
        self.auth = auth
        self.config_manager = config_manager or ConfigManager()

        self.catalog: Optional[JsonQuizCatalog] = None
        self.result_store: Optional[JsonResultStore] = None
        self.catalog_manager: Optional[CatalogManager] = None

    @property
    def settings(self) -> EngineSettings:
        return self.config_manager.get_settings()

    def setup(self) -> bool:
        """
        Create the catalog and result store and load quiz files.

        Returns:
            True if quizzes loaded without errors
        """
        settings = self.settings
        self.catalog = JsonQuizCatalog(settings.quiz_directory)
        self.result_store = JsonResultStore(settings.results_file)
        self.catalog_manager = CatalogManager(self.catalog, self.auth)

        loaded = self.catalog.load_quiz_files()
        summary = self.catalog.get_loading_summary()
        self.logger.info(
            f"Engine ready: {len(loaded)} quizzes from {settings.quiz_directory}, "
            f"results in {settings.results_file}",
            extra={
                'event_type': 'engine_setup',
                'total_quizzes': summary['total_quizzes'],
                'error_count': summary['error_count'],
                'timestamp': time.time()
            }
        )
        return not self.catalog.has_load_errors()

    def create_listener(self, channel: Optional[discord.abc.Messageable] = None) -> SessionListener:
        """Post to a Discord channel when one is given, otherwise only log."""
        if channel is None:
            return LoggingSessionListener()
        return DiscordSessionListener(channel, celebration_percent=self.settings.celebration_percent)

    def create_session(
        self,
        listener: Optional[SessionListener] = None,
        session_id: Optional[str] = None
    ) -> QuizSession:
        """
        Create a session with its own countdown.

        Raises:
            RuntimeError: If setup() has not been called
        """
        if self.result_store is None:
            raise RuntimeError("Engine is not set up")

        return QuizSession(
            submitter=ResultSubmitter(self.result_store, self.auth),
            listener=listener or LoggingSessionListener(),
            countdown=CountdownTimer(tick_interval=self.settings.tick_interval),
            session_id=session_id
        )

    async def start_quiz(
        self,
        quiz_id: str,
        listener: Optional[SessionListener] = None,
        session_id: Optional[str] = None
    ) -> Optional[QuizSession]:
        """Load a quiz into a new session and start it. Returns None if it was rejected."""
        session = self.create_session(listener, session_id)
        if not await session.load(self.catalog, quiz_id):
            return None
        session.start()
        return session

    def time_color(self, session: QuizSession) -> TimeColor:
        settings = self.settings
        return time_color(session.remaining, settings.warning_seconds, settings.critical_seconds)

    def is_celebration(self, result: QuizResult) -> bool:
        return is_celebration(result.score, result.total_questions, self.settings.celebration_percent)
