"""
Configuration manager for Trivia Quiz Bot settings and parameters.
"""
import logging
from typing import Any, Dict, List, Optional

from .models import Difficulty, QuizOptions
from .trivia_client import DEFAULT_BASE_URL


class ConfigManager:
    """Manages default quiz options and trivia provider settings."""

    # Default configuration values
    DEFAULT_QUESTION_COUNT = 5
    DEFAULT_DIFFICULTY = Difficulty.EASY
    DEFAULT_CATEGORY = None  # Any category
    DEFAULT_BASE_URL = DEFAULT_BASE_URL
    DEFAULT_REQUEST_TIMEOUT = 10.0
    DEFAULT_MAX_RETRIES = 2
    DEFAULT_RETRY_DELAY = 0.5

    # Validation limits
    MIN_QUESTION_COUNT = 1
    MAX_QUESTION_COUNT = 50  # Provider cap per request
    MAX_RETRIES_LIMIT = 5

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._options = QuizOptions(
            category=self.DEFAULT_CATEGORY,
            difficulty=self.DEFAULT_DIFFICULTY,
            question_count=self.DEFAULT_QUESTION_COUNT
        )
        self._base_url = self.DEFAULT_BASE_URL
        self._request_timeout = self.DEFAULT_REQUEST_TIMEOUT
        self._max_retries = self.DEFAULT_MAX_RETRIES
        self._retry_delay = self.DEFAULT_RETRY_DELAY

    def get_quiz_options(self) -> QuizOptions:
        """
        Get a copy of the current default quiz options.

        Returns:
            QuizOptions object with current configuration
        """
        return QuizOptions(
            category=self._options.category,
            difficulty=self._options.difficulty,
            question_count=self._options.question_count
        )

    def set_question_count(self, count: int) -> Dict[str, Any]:
        """
        Set the number of questions per game with detailed error reporting.

        Args:
            count: Number of questions

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        error = self.validate_question_count(count)
        if error:
            self.logger.error(error['error'])
            return error

        self._options.question_count = count
        self.logger.info(f"Question count set to {count}")
        return {
            'success': True,
            'message': f"Question count set to {count}",
            'user_message': f"✅ Question count set to {count}"
        }

    def validate_question_count(self, count: Any) -> Optional[Dict[str, Any]]:
        """Return an error dictionary if count is not acceptable, else None."""
        # bool is an int subclass but never a valid count
        if not isinstance(count, int) or isinstance(count, bool):
            return {
                'success': False,
                'error': f"Question count must be an integer, got {type(count).__name__}",
                'user_message': f"❌ Invalid input: Expected a number, got {type(count).__name__}"
            }
        if count < self.MIN_QUESTION_COUNT:
            return {
                'success': False,
                'error': f"Question count must be at least {self.MIN_QUESTION_COUNT}",
                'user_message': f"❌ Too few questions: Minimum is {self.MIN_QUESTION_COUNT}"
            }
        if count > self.MAX_QUESTION_COUNT:
            return {
                'success': False,
                'error': f"Question count cannot exceed {self.MAX_QUESTION_COUNT}",
                'user_message': f"❌ Too many questions: Maximum is {self.MAX_QUESTION_COUNT}"
            }
        return None

    def parse_difficulty(self, value: Any) -> Optional[Difficulty]:
        """Accept a Difficulty or its value/name in any case; None if unknown."""
        if isinstance(value, Difficulty):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        for difficulty in Difficulty:
            if difficulty.value == normalized:
                return difficulty
        return None

    def set_difficulty(self, value: Any) -> Dict[str, Any]:
        """
        Set the difficulty used for question requests.

        Args:
            value: Difficulty member, or one of 'easy', 'medium', 'hard'

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        difficulty = self.parse_difficulty(value)
        if difficulty is None:
            error_msg = f"Unknown difficulty: {value!r}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ Difficulty must be one of: easy, medium, hard"
            }

        self._options.difficulty = difficulty
        self.logger.info(f"Difficulty set to {difficulty.value}")
        return {
            'success': True,
            'message': f"Difficulty set to {difficulty.value}",
            'user_message': f"✅ Difficulty set to {difficulty.value}"
        }

    def validate_category(self, category: Any) -> Optional[Dict[str, Any]]:
        """Return an error dictionary if category is not acceptable, else None."""
        if category is None:
            return None
        if not isinstance(category, int) or isinstance(category, bool):
            return {
                'success': False,
                'error': f"Category must be an integer id, got {type(category).__name__}",
                'user_message': f"❌ Invalid input: Expected a category id, got {type(category).__name__}"
            }
        if category < 1:
            return {
                'success': False,
                'error': f"Category id must be positive, got {category}",
                'user_message': "❌ Category id must be a positive number. Use /trivia_categories to list them."
            }
        return None

    def set_category(self, category: Optional[int]) -> Dict[str, Any]:
        """
        Set the category used for question requests.

        Args:
            category: Provider category id, or None for any category

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        error = self.validate_category(category)
        if error:
            self.logger.error(error['error'])
            return error

        self._options.category = category
        label = "any category" if category is None else f"category {category}"
        self.logger.info(f"Category set to {label}")
        return {
            'success': True,
            'message': f"Category set to {label}",
            'user_message': f"✅ Questions will come from {label}"
        }

    def get_api_settings(self) -> Dict[str, Any]:
        """Keyword arguments for constructing a TriviaClient."""
        return {
            'base_url': self._base_url,
            'timeout': self._request_timeout,
            'max_retries': self._max_retries,
            'retry_delay': self._retry_delay
        }

    def apply_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Apply the 'trivia' and 'quiz' sections of a loaded config file.

        Invalid values are logged and skipped so the defaults stay in effect.

        Args:
            config: Parsed config.json contents

        Returns:
            List of problems found while applying the configuration
        """
        problems = []

        trivia_config = config.get('trivia', {}) or {}
        base_url = trivia_config.get('base_url')
        if base_url is not None:
            if isinstance(base_url, str) and base_url.startswith(('http://', 'https://')):
                self._base_url = base_url
            else:
                problems.append(f"Invalid trivia base_url: {base_url!r}")

        timeout = trivia_config.get('request_timeout')
        if timeout is not None:
            if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 0:
                self._request_timeout = float(timeout)
            else:
                problems.append(f"Invalid request_timeout: {timeout!r}")

        max_retries = trivia_config.get('max_retries')
        if max_retries is not None:
            if isinstance(max_retries, int) and not isinstance(max_retries, bool) and 0 <= max_retries <= self.MAX_RETRIES_LIMIT:
                self._max_retries = max_retries
            else:
                problems.append(f"Invalid max_retries: {max_retries!r}")

        retry_delay = trivia_config.get('retry_delay')
        if retry_delay is not None:
            if isinstance(retry_delay, (int, float)) and not isinstance(retry_delay, bool) and retry_delay >= 0:
                self._retry_delay = float(retry_delay)
            else:
                problems.append(f"Invalid retry_delay: {retry_delay!r}")

        quiz_config = config.get('quiz', {}) or {}
        if 'default_question_count' in quiz_config:
            result = self.set_question_count(quiz_config['default_question_count'])
            if not result['success']:
                problems.append(result['error'])
        if 'default_difficulty' in quiz_config:
            result = self.set_difficulty(quiz_config['default_difficulty'])
            if not result['success']:
                problems.append(result['error'])
        if 'default_category' in quiz_config:
            result = self.set_category(quiz_config['default_category'])
            if not result['success']:
                problems.append(result['error'])

        for problem in problems:
            self.logger.warning(f"Configuration problem, using default: {problem}")
        if not problems:
            self.logger.info("Configuration applied successfully")
        return problems

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._options = QuizOptions(
            category=self.DEFAULT_CATEGORY,
            difficulty=self.DEFAULT_DIFFICULTY,
            question_count=self.DEFAULT_QUESTION_COUNT
        )
        self._base_url = self.DEFAULT_BASE_URL
        self._request_timeout = self.DEFAULT_REQUEST_TIMEOUT
        self._max_retries = self.DEFAULT_MAX_RETRIES
        self._retry_delay = self.DEFAULT_RETRY_DELAY
        self.logger.info("All settings reset to default values")

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        validation_result = {
            "valid": True,
            "issues": []
        }

        if self.validate_question_count(self._options.question_count):
            validation_result["valid"] = False
            validation_result["issues"].append(
                f"Invalid question count: {self._options.question_count}"
            )

        if not isinstance(self._options.difficulty, Difficulty):
            validation_result["valid"] = False
            validation_result["issues"].append(
                f"Invalid difficulty: {self._options.difficulty}"
            )

        if self.validate_category(self._options.category):
            validation_result["valid"] = False
            validation_result["issues"].append(
                f"Invalid category: {self._options.category}"
            )

        return validation_result

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        category_str = (
            str(self._options.category)
            if self._options.category is not None
            else "any"
        )

        return (
            f"Quiz Settings:\n"
            f"• Questions: {self._options.question_count}\n"
            f"• Difficulty: {self._options.difficulty.value}\n"
            f"• Category: {category_str}\n"
            f"• Provider: {self._base_url}"
        )
