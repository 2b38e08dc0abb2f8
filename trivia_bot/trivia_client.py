"""
Trivia provider client for the Trivia Quiz Bot.
Wraps the session token, category and question endpoints of the Open Trivia Database.
"""
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from .models import Category, Question, QuizOptions


DEFAULT_BASE_URL = "https://opentdb.com"

# Provider response codes other than 0 (success)
RESPONSE_CODE_MESSAGES = {
    1: "No results: not enough questions for this category and difficulty",
    2: "Invalid parameter in question request",
    3: "Session token not found",
    4: "Session token exhausted: every question for this query has been served",
    5: "Rate limit exceeded",
}
EXHAUSTED_RESPONSE_CODES = (1, 4)
TOKEN_NOT_FOUND_RESPONSE_CODE = 3
RATE_LIMIT_RESPONSE_CODE = 5


class TriviaClientError(Exception):
    """Base exception for trivia provider errors."""
    kind = "TriviaClientError"


class NetworkError(TriviaClientError):
    """Raised on transport failures, non-2xx responses or unparseable JSON."""
    kind = "NetworkError"

    def __init__(self, message: str, retryable: bool = False, status: Optional[int] = None):
        super().__init__(message)
        self.retryable = retryable
        self.status = status


class TokenError(TriviaClientError):
    """Raised when no usable session token is available or the provider rejects the held one."""
    kind = "TokenError"


class QuestionFetchError(TriviaClientError):
    """Raised when a question response is empty or malformed."""
    kind = "QuestionFetchError"

    def __init__(self, message: str, response_code: Optional[int] = None, exhausted: bool = False):
        super().__init__(message)
        self.response_code = response_code
        self.exhausted = exhausted or response_code in EXHAUSTED_RESPONSE_CODES

    @property
    def rate_limited(self) -> bool:
        return self.response_code == RATE_LIMIT_RESPONSE_CODE


def decorate_question(raw: Dict[str, Any]) -> Question:
    """
    Convert a provider question record into a Question.

    The answers are the incorrect answers in provider order followed by the
    correct answer. Strings are kept exactly as the provider sent them,
    HTML entities included.

    Args:
        raw: One entry of the provider's ``results`` list

    Returns:
        Normalized Question

    Raises:
        ValueError: If the record is missing fields or has the wrong types
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Question record must be an object, got {type(raw).__name__}")

    text = raw.get("question")
    incorrect_answers = raw.get("incorrect_answers")
    correct_answer = raw.get("correct_answer")

    if not isinstance(text, str) or not text:
        raise ValueError("Question record has no question text")
    if not isinstance(correct_answer, str) or not correct_answer:
        raise ValueError("Question record has no correct answer")
    if not isinstance(incorrect_answers, list) or not all(
        isinstance(answer, str) for answer in incorrect_answers
    ):
        raise ValueError("Question record has invalid incorrect answers")

    return Question(
        text=text,
        answers=[*incorrect_answers, correct_answer],
        correct_answer=correct_answer,
        category=raw.get("category"),
        difficulty=raw.get("difficulty"),
    )


def build_question_params(options: QuizOptions, token: Optional[str]) -> Dict[str, str]:
    """Query parameters for a single multiple-choice question."""
    params = {
        "amount": "1",
        "type": "multiple",
        "difficulty": options.difficulty.value,
    }
    if options.category is not None:
        params["category"] = str(options.category)
    if token:
        params["token"] = token
    return params


class TriviaClient:
    """
    Async client for the trivia provider.

    Owns the session token. The token scopes question delivery so the
    provider does not repeat a question until the token is replaced.
    """

    TOKEN_PATH = "/api_token.php"
    CATEGORY_PATH = "/api_category.php"
    QUESTION_PATH = "/api.php"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize the trivia client.

        Args:
            base_url: Provider root URL
            timeout: Total timeout per request in seconds
            max_retries: Extra attempts for transient transport failures
            retry_delay: Base delay for exponential backoff between attempts
            session: Shared aiohttp session; one is created lazily if omitted
        """
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._session = session
        self._owns_session = session is None
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    async def __aenter__(self) -> "TriviaClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None:
            if not self._session.closed:
                await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _request_json(self, path: str, params: Optional[Dict[str, str]]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        session = self._get_session()
        try:
            async with session.get(
                url, params=params, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if response.status >= 500:
                    raise NetworkError(
                        f"Provider returned HTTP {response.status} for {path}",
                        retryable=True,
                        status=response.status,
                    )
                if response.status >= 300:
                    raise NetworkError(
                        f"Provider returned HTTP {response.status} for {path}",
                        status=response.status,
                    )
                try:
                    data = await response.json(content_type=None)
                except (json.JSONDecodeError, ValueError) as e:
                    raise NetworkError(f"Malformed JSON from {path}: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(
                f"Transport failure for {path}: {str(e) or type(e).__name__}", retryable=True
            ) from e

        if not isinstance(data, dict):
            raise NetworkError(f"Expected a JSON object from {path}, got {type(data).__name__}")
        return data

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        GET a provider endpoint, retrying transient transport failures.

        Args:
            path: Endpoint path
            params: Query parameters

        Returns:
            Decoded JSON object

        Raises:
            NetworkError: If the request fails after all attempts
        """
        for attempt in range(self.max_retries + 1):
            try:
                return await self._request_json(path, params)
            except NetworkError as e:
                if not e.retryable or attempt >= self.max_retries:
                    self.logger.error(f"Request to {path} failed: {e}")
                    raise
                delay = self.retry_delay * (2 ** attempt)
                self.logger.warning(
                    f"Request to {path} failed (attempt {attempt + 1}/{self.max_retries + 1}), "
                    f"retrying in {delay:.2f}s: {e}"
                )
                await asyncio.sleep(delay)
        raise NetworkError(f"Request to {path} was not attempted")

    async def request_session_token(self) -> str:
        """
        Request a new session token and hold it for question requests.

        Returns:
            The new token

        Raises:
            TokenError: If the response carries no usable token; the previous
                token is kept
            NetworkError: On transport failure
        """
        data = await self._get_json(self.TOKEN_PATH, {"command": "request"})

        token = data.get("token")
        response_code = data.get("response_code", 0)
        if not isinstance(token, str) or not token:
            raise TokenError("Token response did not contain a token")
        if response_code != 0:
            raise TokenError(
                RESPONSE_CODE_MESSAGES.get(response_code, f"Token request failed with code {response_code}")
            )

        self._token = token
        self.logger.info("Obtained new trivia session token")
        return token

    async def fetch_categories(self) -> List[Category]:
        """
        Fetch the provider's category list.

        Raises:
            NetworkError: On transport failure or a malformed category list
        """
        data = await self._get_json(self.CATEGORY_PATH)

        raw_categories = data.get("trivia_categories")
        if not isinstance(raw_categories, list):
            raise NetworkError("Category response did not contain a category list")

        categories = []
        for item in raw_categories:
            if not isinstance(item, dict) or not isinstance(item.get("id"), int) or not isinstance(item.get("name"), str):
                raise NetworkError(f"Malformed category entry: {item!r}")
            categories.append(Category(id=item["id"], name=item["name"]))

        self.logger.info(f"Fetched {len(categories)} trivia categories")
        return categories

    async def fetch_question(self, options: QuizOptions) -> Question:
        """
        Fetch one multiple-choice question for the given options.

        Args:
            options: Category and difficulty filter

        Returns:
            The decorated question

        Raises:
            QuestionFetchError: If no question was returned or it is malformed
            TokenError: If the provider no longer knows the held token; the token
                is dropped so the next request asks for a new one
            NetworkError: On transport failure
        """
        params = build_question_params(options, self._token)
        data = await self._get_json(self.QUESTION_PATH, params)

        response_code = data.get("response_code", 0)
        results = data.get("results")

        if response_code == TOKEN_NOT_FOUND_RESPONSE_CODE:
            self.logger.warning("Provider no longer recognizes the session token, dropping it")
            self._token = None
            raise TokenError(RESPONSE_CODE_MESSAGES[TOKEN_NOT_FOUND_RESPONSE_CODE])
        if response_code != 0:
            raise QuestionFetchError(
                RESPONSE_CODE_MESSAGES.get(response_code, f"Question request failed with code {response_code}"),
                response_code=response_code,
            )
        if not isinstance(results, list):
            raise QuestionFetchError("Question response did not contain a result list")
        if not results:
            raise QuestionFetchError(RESPONSE_CODE_MESSAGES[1], response_code=response_code, exhausted=True)

        try:
            question = decorate_question(results[0])
        except ValueError as e:
            raise QuestionFetchError(f"Malformed question: {e}", response_code=response_code) from e

        self.logger.debug(
            f"Fetched question (category={options.category}, difficulty={options.difficulty.value})"
        )
        return question
