"""
Configuration manager for quiz engine settings.
"""
import dataclasses
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .presentation import (
    DEFAULT_CELEBRATION_PERCENT,
    DEFAULT_CRITICAL_SECONDS,
    DEFAULT_WARNING_SECONDS,
)


@dataclass
class EngineSettings:
    """Runtime settings of the quiz engine."""
    tick_interval: float = 1.0
    warning_seconds: int = DEFAULT_WARNING_SECONDS
    critical_seconds: int = DEFAULT_CRITICAL_SECONDS
    celebration_percent: int = DEFAULT_CELEBRATION_PERCENT
    quiz_directory: str = "./quizzes/"
    results_file: str = "./data/results.json"
    log_level: str = "INFO"
    log_directory: str = "./logs/"


class ConfigManager:
    """Manages engine configuration with validated setters."""

    ENV_QUIZ_DIRECTORY = "TIMED_QUIZ_QUIZ_DIRECTORY"
    ENV_RESULTS_FILE = "TIMED_QUIZ_RESULTS_FILE"
    ENV_LOG_LEVEL = "TIMED_QUIZ_LOG_LEVEL"

    # Validation limits
    MIN_TICK_INTERVAL = 0.01
    MAX_TICK_INTERVAL = 60.0
    VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._settings = EngineSettings()

    def get_settings(self) -> EngineSettings:
        """
        Get a copy of the current settings.

        Returns:
            EngineSettings object with current configuration
        """
        return dataclasses.replace(self._settings)

    def _failure(self, error_msg: str, user_message: str) -> Dict[str, Any]:
        self.logger.error(error_msg)
        return {
            'success': False,
            'error': error_msg,
            'user_message': f"❌ {user_message}"
        }

    def _success(self, message: str) -> Dict[str, Any]:
        self.logger.info(message)
        return {
            'success': True,
            'message': message,
            'user_message': f"✅ {message}"
        }

    def set_tick_interval(self, interval: float) -> Dict[str, Any]:
        """
        Set the number of seconds between countdown ticks.

        Args:
            interval: Seconds between ticks

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(interval, bool) or not isinstance(interval, (int, float)):
            return self._failure(
                f"Tick interval must be a number, got {type(interval).__name__}",
                f"Invalid input: Expected a number, got {type(interval).__name__}"
            )

        if not self.MIN_TICK_INTERVAL <= interval <= self.MAX_TICK_INTERVAL:
            return self._failure(
                f"Tick interval must be between {self.MIN_TICK_INTERVAL} and {self.MAX_TICK_INTERVAL} seconds",
                f"Tick interval out of range: {interval}"
            )

        self._settings.tick_interval = float(interval)
        return self._success(f"Tick interval set to {float(interval)} seconds")

    def set_time_thresholds(self, warning_seconds: int, critical_seconds: int) -> Dict[str, Any]:
        """
        Set the remaining-time thresholds used to color the countdown.

        Args:
            warning_seconds: At or below this the time shows as a warning
            critical_seconds: At or below this the time shows as critical

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        for name, value in (("Warning", warning_seconds), ("Critical", critical_seconds)):
            if isinstance(value, bool) or not isinstance(value, int):
                return self._failure(
                    f"{name} threshold must be an integer, got {type(value).__name__}",
                    f"Invalid input: Expected a number, got {type(value).__name__}"
                )
            if value < 0:
                return self._failure(
                    f"{name} threshold cannot be negative",
                    f"{name} threshold must be zero or more seconds"
                )

        if critical_seconds >= warning_seconds:
            return self._failure(
                "Critical threshold must be lower than warning threshold",
                "Critical threshold must be lower than the warning threshold"
            )

        self._settings.warning_seconds = warning_seconds
        self._settings.critical_seconds = critical_seconds
        return self._success(f"Time thresholds set to {warning_seconds}s warning, {critical_seconds}s critical")

    def set_celebration_percent(self, percent: int) -> Dict[str, Any]:
        """
        Set the score percentage at which a result is celebrated.

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(percent, bool) or not isinstance(percent, int):
            return self._failure(
                f"Celebration threshold must be an integer, got {type(percent).__name__}",
                f"Invalid input: Expected a number, got {type(percent).__name__}"
            )

        if not 0 <= percent <= 100:
            return self._failure(
                "Celebration threshold must be between 0 and 100",
                f"Celebration threshold out of range: {percent}"
            )

        self._settings.celebration_percent = percent
        return self._success(f"Celebration threshold set to {percent}%")

    def _validate_path(self, path: Any, label: str) -> Optional[Dict[str, Any]]:
        if not isinstance(path, str):
            return self._failure(
                f"{label} must be a string, got {type(path).__name__}",
                f"Invalid input: Expected a path string, got {type(path).__name__}"
            )
        if not path.strip():
            return self._failure(f"{label} cannot be empty", f"{label} cannot be empty")
        return None

    def set_quiz_directory(self, directory: str) -> Dict[str, Any]:
        """
        Set the directory path for quiz files.

        Args:
            directory: Path to quiz files directory

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        failure = self._validate_path(directory, "Quiz directory")
        if failure:
            return failure

        self._settings.quiz_directory = directory
        return self._success(f"Quiz directory set to {directory}")

    def set_results_file(self, file_path: str) -> Dict[str, Any]:
        """Set the JSON file results are stored in."""
        failure = self._validate_path(file_path, "Results file")
        if failure:
            return failure

        if Path(file_path).suffix.lower() != ".json":
            return self._failure(
                f"Results file must be a .json file: {file_path}",
                f"Results file must end in .json: {file_path}"
            )

        self._settings.results_file = file_path
        return self._success(f"Results file set to {file_path}")

    def set_log_level(self, level: str) -> Dict[str, Any]:
        """Set the log level name."""
        if not isinstance(level, str) or level.upper() not in self.VALID_LOG_LEVELS:
            return self._failure(
                f"Invalid log level: {level}",
                f"Log level must be one of {', '.join(self.VALID_LOG_LEVELS)}"
            )

        self._settings.log_level = level.upper()
        return self._success(f"Log level set to {level.upper()}")

    def set_log_directory(self, directory: str) -> Dict[str, Any]:
        failure = self._validate_path(directory, "Log directory")
        if failure:
            return failure

        self._settings.log_directory = directory
        return self._success(f"Log directory set to {directory}")

    def load_from_file(self, config_path: str = "config.json") -> Dict[str, Any]:
        """
        Apply settings from a JSON configuration file.

        The file may contain "engine", "storage" and "logging" sections.
        Invalid values are reported and skipped; valid ones are applied.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary with success status and the errors of rejected values
        """
        path = Path(config_path)
        if not path.exists():
            return self._failure(f"Config file not found: {config_path}", f"Config file not found: {config_path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            return self._failure(f"Invalid JSON in {config_path}: {e}", f"Invalid JSON in {config_path}")
        except OSError as e:
            return self._failure(f"Failed to read {config_path}: {e}", f"Could not read {config_path}")

        if not isinstance(config, dict):
            return self._failure(f"Config file {config_path} must contain an object", "Config must be a JSON object")

        engine = config.get('engine', {})
        storage = config.get('storage', {})
        logging_section = config.get('logging', {})

        results = []
        if 'tick_interval' in engine:
            results.append(self.set_tick_interval(engine['tick_interval']))
        if 'warning_seconds' in engine or 'critical_seconds' in engine:
            results.append(self.set_time_thresholds(
                engine.get('warning_seconds', self._settings.warning_seconds),
                engine.get('critical_seconds', self._settings.critical_seconds)
            ))
        if 'celebration_percent' in engine:
            results.append(self.set_celebration_percent(engine['celebration_percent']))
        if 'quiz_directory' in storage:
            results.append(self.set_quiz_directory(storage['quiz_directory']))
        if 'results_file' in storage:
            results.append(self.set_results_file(storage['results_file']))
        if 'level' in logging_section:
            results.append(self.set_log_level(logging_section['level']))
        if 'log_directory' in logging_section:
            results.append(self.set_log_directory(logging_section['log_directory']))

        errors = [result['error'] for result in results if not result['success']]
        if errors:
            self.logger.warning(f"Loaded {config_path} with {len(errors)} rejected values")

        return {
            'success': not errors,
            'applied': len(results) - len(errors),
            'errors': errors,
            'message': f"Loaded configuration from {config_path}"
        }

    def apply_environment_overrides(self, environ: Optional[Mapping[str, str]] = None) -> List[str]:
        """
        Apply settings from environment variables.

        Returns:
            Names of the variables that were applied
        """
        environ = os.environ if environ is None else environ
        setters = (
            (self.ENV_QUIZ_DIRECTORY, self.set_quiz_directory),
            (self.ENV_RESULTS_FILE, self.set_results_file),
            (self.ENV_LOG_LEVEL, self.set_log_level),
        )

        applied = []
        for name, setter in setters:
            value = environ.get(name)
            if value and setter(value)['success']:
                applied.append(name)
        return applied

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._settings = EngineSettings()
        self.logger.info("All settings reset to default values")

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        settings = self._settings
        validation_result = {
            "valid": True,
            "issues": []
        }

        if not self.MIN_TICK_INTERVAL <= settings.tick_interval <= self.MAX_TICK_INTERVAL:
            validation_result["issues"].append(f"Invalid tick interval: {settings.tick_interval}")

        if not 0 <= settings.critical_seconds < settings.warning_seconds:
            validation_result["issues"].append(
                f"Invalid time thresholds: warning {settings.warning_seconds}, critical {settings.critical_seconds}"
            )

        if not 0 <= settings.celebration_percent <= 100:
            validation_result["issues"].append(f"Invalid celebration threshold: {settings.celebration_percent}")

        for label, value in (("quiz directory", settings.quiz_directory),
                             ("results file", settings.results_file),
                             ("log directory", settings.log_directory)):
            if not isinstance(value, str) or not value.strip():
                validation_result["issues"].append(f"Invalid {label}: {value}")

        if settings.log_level not in self.VALID_LOG_LEVELS:
            validation_result["issues"].append(f"Invalid log level: {settings.log_level}")

        validation_result["valid"] = not validation_result["issues"]
        return validation_result

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        settings = self._settings
        return (
            f"Quiz Engine Settings:\n"
            f"• Tick interval: {settings.tick_interval} seconds\n"
            f"• Time colors: warning at {settings.warning_seconds}s, critical at {settings.critical_seconds}s\n"
            f"• Celebration: {settings.celebration_percent}%\n"
            f"• Quiz Directory: {settings.quiz_directory}\n"
            f"• Results File: {settings.results_file}\n"
            f"• Logging: {settings.log_level} in {settings.log_directory}"
        )
