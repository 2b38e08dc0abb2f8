"""
Test fixtures and sample data for Trivia Quiz Bot tests.
"""
import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import discord

from trivia_bot.config_manager import ConfigManager
from trivia_bot.models import Category, Difficulty, Question, QuizOptions
from trivia_bot.trivia_client import TriviaClient


class TestFixtures:
    """Centralized test fixtures for all test modules."""

    @staticmethod
    def create_raw_question(
        question: str = "Capital of England?",
        correct_answer: str = "London",
        incorrect_answers: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """Create a question record shaped like the provider's."""
        if incorrect_answers is None:
            incorrect_answers = ["Paris", "Rome", "Washington DC"]
        return {
            "category": "Geography",
            "type": "multiple",
            "difficulty": "easy",
            "question": question,
            "correct_answer": correct_answer,
            "incorrect_answers": incorrect_answers,
        }

    @staticmethod
    def create_england_question() -> Question:
        return Question(
            text="Capital of England?",
            answers=["Paris", "Rome", "Washington DC", "London"],
            correct_answer="London",
        )

    @staticmethod
    def create_sample_questions() -> List[Question]:
        """Create sample questions for testing."""
        return [
            TestFixtures.create_england_question(),
            Question("What is 2+2?", ["3", "5", "22", "4"], "4"),
            Question("Largest planet?", ["Earth", "Mars", "Saturn", "Jupiter"], "Jupiter"),
        ]

    @staticmethod
    def create_sample_categories() -> List[Category]:
        return [
            Category(id=9, name="General Knowledge"),
            Category(id=15, name="Entertainment: Video Games"),
            Category(id=22, name="Geography"),
        ]

    @staticmethod
    def create_quiz_options(question_count: int = 2) -> QuizOptions:
        return QuizOptions(category=None, difficulty=Difficulty.EASY, question_count=question_count)

    @staticmethod
    def create_question_response(results: Optional[List[Dict[str, Any]]] = None, response_code: int = 0) -> Dict[str, Any]:
        if results is None:
            results = [TestFixtures.create_raw_question()]
        return {"response_code": response_code, "results": results}

    @staticmethod
    def create_token_response(token: str = "abc123") -> Dict[str, Any]:
        return {
            "response_code": 0,
            "response_message": "Token Generated Successfully!",
            "token": token,
        }

    @staticmethod
    def create_category_response() -> Dict[str, Any]:
        return {
            "trivia_categories": [
                {"id": category.id, "name": category.name}
                for category in TestFixtures.create_sample_categories()
            ]
        }

    @staticmethod
    def create_config_manager(question_count: int = 2) -> ConfigManager:
        config_manager = ConfigManager()
        config_manager.set_question_count(question_count)
        return config_manager

    @staticmethod
    def create_mock_client(questions: Optional[List[Question]] = None, token: Optional[str] = "token-1") -> Mock:
        """Create a TriviaClient stand-in whose question fetches return the given questions in order."""
        client = Mock(spec=TriviaClient)
        client.token = token
        if questions is None:
            questions = TestFixtures.create_sample_questions()
        client.fetch_question = AsyncMock(side_effect=list(questions))
        client.request_session_token = AsyncMock(return_value="token-2")
        client.fetch_categories = AsyncMock(return_value=TestFixtures.create_sample_categories())
        return client


class FakeResponse:
    """Minimal stand-in for an aiohttp response used as an async context manager."""

    def __init__(self, status: int = 200, payload: Any = None, json_error: Optional[Exception] = None):
        self.status = status
        self._payload = payload
        self._json_error = json_error

    async def json(self, content_type: Optional[str] = "application/json") -> Any:
        if self._json_error is not None:
            raise self._json_error
        return self._payload

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None


class MockDiscordObjects:
    """Mock Discord objects for testing bot functionality."""

    @staticmethod
    def create_mock_interaction(channel_id: int = 12345, user_id: int = 67890) -> Mock:
        """Create mock Discord interaction."""
        interaction = Mock(spec=discord.Interaction)
        interaction.channel_id = channel_id
        interaction.user = Mock()
        interaction.user.id = user_id
        interaction.channel = MockDiscordObjects.create_mock_channel(channel_id)
        interaction.response = Mock()
        interaction.response.is_done.return_value = False
        interaction.response.send_message = AsyncMock()
        interaction.response.defer = AsyncMock()
        interaction.followup = Mock()
        interaction.followup.send = AsyncMock()
        return interaction

    @staticmethod
    def create_mock_channel(channel_id: int = 12345) -> Mock:
        """Create mock Discord channel."""
        channel = Mock(spec=discord.TextChannel)
        channel.id = channel_id
        channel.send = AsyncMock()
        return channel


class AsyncTestHelpers:
    """Helper functions for async testing."""

    @staticmethod
    async def run_with_timeout(coro, timeout: float = 5.0):
        """Run coroutine with timeout."""
        return await asyncio.wait_for(coro, timeout=timeout)

    @staticmethod
    def create_blocking_fetch(result: Any) -> Dict[str, Any]:
        """
        Create an async fetch that waits until released.

        Returns:
            Dictionary with the 'fetch' coroutine function and the 'release' event
        """
        release = asyncio.Event()

        async def fetch(*args, **kwargs):
            await release.wait()
            return result

        return {'fetch': fetch, 'release': release}
