"""
Configuration manager for QuizMaster settings and file locations.
"""
import json
import logging
from typing import Optional, Dict, Any, List, Tuple
from pathlib import Path

from .models import QuizSettings


class ConfigError(Exception):
    """Raised when the configuration file cannot be parsed."""
    pass


def load_config_file(config_path) -> Dict[str, Any]:
    """
    Load a JSON configuration file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Parsed configuration, or an empty dict if the file does not exist

    Raises:
        ConfigError: If the file exists but is not a valid JSON object
    """
    path = Path(config_path)
    if not path.exists():
        logging.getLogger(__name__).info(f"No configuration file at {path}, using defaults")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return config


class ConfigManager:
    """Manages quiz settings and the files the game reads and writes."""

    # Default configuration values
    DEFAULT_QUESTION_COUNT = 10
    DEFAULT_TIMER_DURATION = 10
    DEFAULT_EXTRA_TIME = 10
    DEFAULT_POLL_INTERVAL = 0.1
    DEFAULT_QUIZ_DIRECTORY = "./categories/"
    DEFAULT_HIGH_SCORE_FILE = "high_scores.txt"
    DEFAULT_SESSION_LOG_FILE = "quiz_logs.txt"
    DEFAULT_PROGRESS_FILE = "save_progress.txt"
    DEFAULT_CATEGORIES = (
        ("Science", "science.txt"),
        ("Sports", "sports.txt"),
        ("History", "history.txt"),
        ("Computer", "computer.txt"),
        ("IQ/Logic", "iq.txt"),
    )

    # Validation limits
    MIN_QUESTION_COUNT = 1
    MAX_QUESTION_COUNT = 50
    MIN_TIMER_DURATION = 5
    MAX_TIMER_DURATION = 300  # 5 minutes
    MIN_EXTRA_TIME = 1
    MAX_EXTRA_TIME = 120
    MIN_POLL_INTERVAL = 0.01
    MAX_POLL_INTERVAL = 0.5

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._global_settings = QuizSettings()
        self._quiz_directory = self.DEFAULT_QUIZ_DIRECTORY
        self._categories: List[Tuple[str, str]] = list(self.DEFAULT_CATEGORIES)
        self._files = {
            'high_scores': self.DEFAULT_HIGH_SCORE_FILE,
            'session_log': self.DEFAULT_SESSION_LOG_FILE,
            'progress': self.DEFAULT_PROGRESS_FILE,
        }

    def get_quiz_settings(self) -> QuizSettings:
        """
        Get current quiz settings.

        Returns:
            QuizSettings object with current configuration
        """
        return QuizSettings(
            question_count=self._global_settings.question_count,
            timer_duration=self._global_settings.timer_duration,
            extra_time=self._global_settings.extra_time,
            poll_interval=self._global_settings.poll_interval
        )

    def _set_int_setting(self, name: str, label: str, value, minimum: int, maximum: int, unit: str = "") -> Dict[str, Any]:
        """
        Validate and store an integer setting.

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        suffix = f" {unit}" if unit else ""

        # bool is an int subclass, reject it explicitly
        if not isinstance(value, int) or isinstance(value, bool):
            error_msg = f"{label} must be an integer, got {type(value).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Invalid input: Expected a number, got {type(value).__name__}"
            }

        if value < minimum:
            error_msg = f"{label} must be at least {minimum}{suffix}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"{label} too small: Minimum is {minimum}{suffix}"
            }

        if value > maximum:
            error_msg = f"{label} cannot exceed {maximum}{suffix}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"{label} too large: Maximum is {maximum}{suffix}"
            }

        setattr(self._global_settings, name, value)
        self.logger.info(f"{label} set to {value}{suffix}")
        return {
            'success': True,
            'message': f"{label} set to {value}{suffix}",
            'user_message': f"{label} set to {value}{suffix}"
        }

    def set_question_count(self, count: int) -> Dict[str, Any]:
        """Set the number of questions per quiz."""
        return self._set_int_setting(
            'question_count', "Question count", count,
            self.MIN_QUESTION_COUNT, self.MAX_QUESTION_COUNT
        )

    def set_timer_duration(self, duration: int) -> Dict[str, Any]:
        """Set the default countdown for each question."""
        return self._set_int_setting(
            'timer_duration', "Timer duration", duration,
            self.MIN_TIMER_DURATION, self.MAX_TIMER_DURATION, "seconds"
        )

    def set_extra_time(self, seconds: int) -> Dict[str, Any]:
        """Set the number of seconds granted by the Extra Time lifeline."""
        return self._set_int_setting(
            'extra_time', "Extra time", seconds,
            self.MIN_EXTRA_TIME, self.MAX_EXTRA_TIME, "seconds"
        )

    def set_poll_interval(self, interval: float) -> Dict[str, Any]:
        """
        Set how long the countdown loop yields between input polls.

        Args:
            interval: Seconds between polls, must stay well under one second

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(interval, bool) or not isinstance(interval, (int, float)):
            error_msg = f"Poll interval must be a number, got {type(interval).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Invalid input: Expected a number, got {type(interval).__name__}"
            }

        if not self.MIN_POLL_INTERVAL <= interval <= self.MAX_POLL_INTERVAL:
            error_msg = (
                f"Poll interval must be between {self.MIN_POLL_INTERVAL} "
                f"and {self.MAX_POLL_INTERVAL} seconds"
            )
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': error_msg
            }

        self._global_settings.poll_interval = float(interval)
        self.logger.info(f"Poll interval set to {interval} seconds")
        return {
            'success': True,
            'message': f"Poll interval set to {interval} seconds",
            'user_message': f"Poll interval set to {interval} seconds"
        }

    def set_quiz_directory(self, directory: str) -> Dict[str, Any]:
        """
        Set the directory holding the category files.

        Args:
            directory: Path to the category files directory

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(directory, str):
            error_msg = f"Quiz directory must be a string, got {type(directory).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"Invalid input: Expected a path string, got {type(directory).__name__}"
            }

        if not directory.strip():
            error_msg = "Quiz directory cannot be empty"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "Directory path cannot be empty"
            }

        self._quiz_directory = directory
        self.logger.info(f"Quiz directory set to {directory}")
        return {
            'success': True,
            'message': f"Quiz directory set to {directory}",
            'user_message': f"Quiz directory set to {directory}"
        }

    def get_quiz_directory(self) -> str:
        return self._quiz_directory

    def set_categories(self, categories) -> Dict[str, Any]:
        """
        Replace the category menu.

        Args:
            categories: Sequence of ``{"name": ..., "file": ...}`` objects

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(categories, list) or not categories:
            error_msg = "Categories must be a non-empty list"
            self.logger.error(error_msg)
            return {'success': False, 'error': error_msg, 'user_message': error_msg}

        parsed = []
        for i, entry in enumerate(categories):
            if (not isinstance(entry, dict)
                    or not isinstance(entry.get('name'), str)
                    or not isinstance(entry.get('file'), str)
                    or not entry['name'].strip()
                    or not entry['file'].strip()):
                error_msg = f"Category {i} must have non-empty 'name' and 'file' strings"
                self.logger.error(error_msg)
                return {'success': False, 'error': error_msg, 'user_message': error_msg}
            parsed.append((entry['name'].strip(), entry['file'].strip()))

        self._categories = parsed
        self.logger.info(f"Loaded {len(parsed)} categories")
        return {
            'success': True,
            'message': f"Loaded {len(parsed)} categories",
            'user_message': f"Loaded {len(parsed)} categories"
        }

    def get_categories(self) -> List[Tuple[str, str]]:
        """Ordered (display name, file name) pairs for the category menu."""
        return list(self._categories)

    def set_file(self, key: str, path: str) -> Dict[str, Any]:
        """Set one of the record files: high_scores, session_log or progress."""
        if key not in self._files:
            error_msg = f"Unknown file setting: {key}"
            self.logger.error(error_msg)
            return {'success': False, 'error': error_msg, 'user_message': error_msg}

        if not isinstance(path, str) or not path.strip():
            error_msg = f"File path for {key} must be a non-empty string"
            self.logger.error(error_msg)
            return {'success': False, 'error': error_msg, 'user_message': error_msg}

        self._files[key] = path
        self.logger.info(f"{key} file set to {path}")
        return {
            'success': True,
            'message': f"{key} file set to {path}",
            'user_message': f"{key} file set to {path}"
        }

    def get_high_score_file(self) -> str:
        return self._files['high_scores']

    def get_session_log_file(self) -> str:
        return self._files['session_log']

    def get_progress_file(self) -> str:
        return self._files['progress']

    def apply_config(self, config: Optional[Dict[str, Any]]) -> List[str]:
        """
        Apply settings from a parsed configuration file.

        Invalid values are logged and the current value is kept.

        Returns:
            List of error messages for rejected values
        """
        errors: List[str] = []
        if not config:
            return errors

        def check(result: Dict[str, Any]) -> None:
            if not result['success']:
                errors.append(result['error'])

        def section(name: str) -> Dict[str, Any]:
            value = config.get(name, {})
            if isinstance(value, dict):
                return value
            error_msg = f"Section '{name}' must be an object, got {type(value).__name__}"
            self.logger.error(error_msg)
            errors.append(error_msg)
            return {}

        quiz_config = section('quiz')
        setters = {
            'quiz_directory': self.set_quiz_directory,
            'question_count': self.set_question_count,
            'timer_duration': self.set_timer_duration,
            'extra_time': self.set_extra_time,
            'poll_interval': self.set_poll_interval,
        }
        for key, setter in setters.items():
            if key in quiz_config:
                check(setter(quiz_config[key]))

        if 'categories' in config:
            check(self.set_categories(config['categories']))

        for key, path in section('files').items():
            check(self.set_file(key, path))

        if errors:
            self.logger.warning(f"Ignored {len(errors)} invalid configuration values")
        else:
            self.logger.info("Configuration applied successfully")
        return errors

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        settings = self._global_settings
        categories = ", ".join(name for name, _ in self._categories)
        return (
            f"Quiz Settings:\n"
            f"- Questions: {settings.question_count}\n"
            f"- Timer: {settings.timer_duration} seconds\n"
            f"- Extra time: {settings.extra_time} seconds\n"
            f"- Categories: {categories}\n"
            f"- Category Directory: {self._quiz_directory}"
        )
