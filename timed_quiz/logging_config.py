"""
Logging setup for applications embedding the quiz engine.
"""
import logging
from pathlib import Path
from typing import Optional

from .config_manager import EngineSettings


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(settings: Optional[EngineSettings] = None) -> logging.Logger:
    """
    Set up console, file and error-only logging.

    Writes engine.log and errors.log into the configured log directory.

    Args:
        settings: Engine settings providing log level and directory, defaults if None

    Returns:
        Logger for the timed_quiz package
    """
    settings = settings or EngineSettings()

    logs_dir = Path(settings.log_directory)
    logs_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(logs_dir / "engine.log", encoding='utf-8')
    file_handler.setFormatter(formatter)

    error_handler = logging.FileHandler(logs_dir / "errors.log", encoding='utf-8')
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(LOG_FORMAT + '\n%(exc_info)s'))

    for handler in (console_handler, file_handler, error_handler):
        root_logger.addHandler(handler)

    # Reduce discord.py noise
    logging.getLogger('discord').setLevel(logging.WARNING)
    logging.getLogger('discord.http').setLevel(logging.WARNING)

    return logging.getLogger('timed_quiz')
