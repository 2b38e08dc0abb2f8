"""
Unit tests for ConfigManager class.
"""
import unittest
import logging

from trivia_bot.config_manager import ConfigManager
from trivia_bot.models import Difficulty


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager functionality."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.config_manager = ConfigManager()

        # Suppress logging during tests
        logging.disable(logging.CRITICAL)

    def tearDown(self):
        """Clean up after each test method."""
        logging.disable(logging.NOTSET)

    def test_initialization_with_defaults(self):
        """Test that ConfigManager initializes with correct default values."""
        options = self.config_manager.get_quiz_options()

        self.assertIsNone(options.category)
        self.assertEqual(options.difficulty, Difficulty.EASY)
        self.assertEqual(options.question_count, 5)
        self.assertEqual(self.config_manager.get_api_settings()['base_url'], "https://opentdb.com")

    def test_get_quiz_options_returns_copy(self):
        options = self.config_manager.get_quiz_options()
        options.question_count = 42

        self.assertEqual(self.config_manager.get_quiz_options().question_count, 5)

    def test_set_question_count_valid_values(self):
        """Test setting valid question count values."""
        for count in (1, 10, 50):
            result = self.config_manager.set_question_count(count)
            self.assertTrue(result['success'])
            self.assertEqual(self.config_manager.get_quiz_options().question_count, count)

    def test_set_question_count_invalid_values(self):
        """Test that invalid counts are rejected and the previous value kept."""
        for count in (0, -3, 51, "5", 2.5, None, True):
            result = self.config_manager.set_question_count(count)
            self.assertFalse(result['success'], f"count {count!r} should be rejected")
            self.assertIn('user_message', result)

        self.assertEqual(self.config_manager.get_quiz_options().question_count, 5)

    def test_set_difficulty(self):
        self.assertTrue(self.config_manager.set_difficulty("Medium")['success'])
        self.assertEqual(self.config_manager.get_quiz_options().difficulty, Difficulty.MEDIUM)

        self.assertTrue(self.config_manager.set_difficulty(Difficulty.HARD)['success'])
        self.assertEqual(self.config_manager.get_quiz_options().difficulty, Difficulty.HARD)

        result = self.config_manager.set_difficulty("nightmare")
        self.assertFalse(result['success'])
        self.assertEqual(self.config_manager.get_quiz_options().difficulty, Difficulty.HARD)

    def test_parse_difficulty(self):
        self.assertEqual(self.config_manager.parse_difficulty(" easy "), Difficulty.EASY)
        self.assertIsNone(self.config_manager.parse_difficulty(3))
        self.assertIsNone(self.config_manager.parse_difficulty(""))

    def test_set_category(self):
        self.assertTrue(self.config_manager.set_category(9)['success'])
        self.assertEqual(self.config_manager.get_quiz_options().category, 9)

        self.assertTrue(self.config_manager.set_category(None)['success'])
        self.assertIsNone(self.config_manager.get_quiz_options().category)

        for category in (0, -1, "9", False):
            self.assertFalse(self.config_manager.set_category(category)['success'])

    def test_apply_config(self):
        """Test applying the trivia and quiz sections of a config file."""
        problems = self.config_manager.apply_config({
            "trivia": {
                "base_url": "http://localhost:8080",
                "request_timeout": 3,
                "max_retries": 1,
                "retry_delay": 0
            },
            "quiz": {
                "default_question_count": 8,
                "default_difficulty": "hard",
                "default_category": 22
            }
        })

        self.assertEqual(problems, [])
        self.assertEqual(self.config_manager.get_api_settings(), {
            'base_url': "http://localhost:8080",
            'timeout': 3.0,
            'max_retries': 1,
            'retry_delay': 0.0
        })
        options = self.config_manager.get_quiz_options()
        self.assertEqual(options.question_count, 8)
        self.assertEqual(options.difficulty, Difficulty.HARD)
        self.assertEqual(options.category, 22)

    def test_apply_config_invalid_values_keep_defaults(self):
        problems = self.config_manager.apply_config({
            "trivia": {
                "base_url": "ftp://nope",
                "request_timeout": 0,
                "max_retries": 99,
                "retry_delay": -1
            },
            "quiz": {
                "default_question_count": 500,
                "default_difficulty": "impossible"
            }
        })

        self.assertEqual(len(problems), 6)
        self.assertEqual(self.config_manager.get_api_settings(), {
            'base_url': ConfigManager.DEFAULT_BASE_URL,
            'timeout': ConfigManager.DEFAULT_REQUEST_TIMEOUT,
            'max_retries': ConfigManager.DEFAULT_MAX_RETRIES,
            'retry_delay': ConfigManager.DEFAULT_RETRY_DELAY
        })
        self.assertEqual(self.config_manager.get_quiz_options().question_count, 5)

    def test_apply_config_missing_sections(self):
        self.assertEqual(self.config_manager.apply_config({}), [])
        self.assertEqual(self.config_manager.apply_config({"trivia": None}), [])

    def test_reset_to_defaults(self):
        """Test resetting all settings to defaults."""
        self.config_manager.set_question_count(20)
        self.config_manager.set_difficulty("hard")
        self.config_manager.set_category(15)
        self.config_manager.apply_config({"trivia": {"max_retries": 0}})

        self.config_manager.reset_to_defaults()

        options = self.config_manager.get_quiz_options()
        self.assertEqual(options.question_count, ConfigManager.DEFAULT_QUESTION_COUNT)
        self.assertEqual(options.difficulty, ConfigManager.DEFAULT_DIFFICULTY)
        self.assertIsNone(options.category)
        self.assertEqual(self.config_manager.get_api_settings()['max_retries'], ConfigManager.DEFAULT_MAX_RETRIES)

    def test_validate_settings(self):
        self.assertEqual(self.config_manager.validate_settings(), {"valid": True, "issues": []})

    def test_get_settings_summary(self):
        """Test getting formatted settings summary."""
        self.config_manager.set_question_count(7)
        self.config_manager.set_difficulty("medium")

        summary = self.config_manager.get_settings_summary()

        self.assertIn("Quiz Settings:", summary)
        self.assertIn("Questions: 7", summary)
        self.assertIn("Difficulty: medium", summary)
        self.assertIn("Category: any", summary)


if __name__ == '__main__':
    unittest.main()
