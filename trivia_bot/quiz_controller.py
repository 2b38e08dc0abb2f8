"""
Quiz controller for the Trivia Quiz Bot.
Drives one channel through the intro, question, answer and outro pages and
sequences the trivia provider requests each transition needs.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .config_manager import ConfigManager
from .models import Category, ErrorRecord, Page, Question, QuizOptions, QuizResult, QuizState
from .question_store import QuestionStore
from .quiz_engine import QuizEngine
from .trivia_client import (
    NetworkError,
    QuestionFetchError,
    TokenError,
    TriviaClient,
    TriviaClientError,
)


Renderer = Callable[[Dict[str, Any]], Awaitable[None]]


class QuizControllerError(Exception):
    """Base exception for quiz controller errors."""
    pass


class InvalidTransitionError(QuizControllerError):
    """Raised when a signal is not valid on the current page."""
    kind = "InvalidTransitionError"


class ControllerBusyError(InvalidTransitionError):
    """Raised when a signal arrives while a provider request is outstanding."""
    kind = "ControllerBusyError"


class QuizController:
    """
    Page state machine for a single quiz channel.

    At most one provider request is in flight at a time: every signal is
    rejected while ``state.busy`` is set. The page and question index only
    move after a request has succeeded.
    """

    def __init__(
        self,
        client: TriviaClient,
        config_manager: ConfigManager,
        renderer: Optional[Renderer] = None,
        channel_id: Optional[int] = None
    ):
        """
        Initialize the quiz controller.

        Args:
            client: Trivia provider client; owns the session token
            config_manager: Source of default options and validation rules
            renderer: Async callable receiving the view after each transition
            channel_id: Discord channel identifier, used in log messages
        """
        self.logger = logging.getLogger(__name__)
        self.client = client
        self.config_manager = config_manager
        self.renderer = renderer
        self.channel_id = channel_id
        self.quiz_engine = QuizEngine()

        self.options: QuizOptions = config_manager.get_quiz_options()
        self.state = QuizState.initial()
        self.store = QuestionStore()
        self.categories: List[Category] = []
        self.last_error: Optional[ErrorRecord] = None
        self.last_result: Optional[QuizResult] = None

    # Derived values

    def get_current_question(self) -> Optional[Question]:
        return self.store.get(self.state.current_question_index)

    def get_score(self) -> int:
        return self.quiz_engine.calculate_score(self.state.user_answers, self.store)

    def get_progress(self) -> Dict[str, int]:
        return self.quiz_engine.get_progress(self.state, self.options)

    def get_view(self) -> Dict[str, Any]:
        """
        Everything the renderer needs for the current page.

        Returns:
            Dictionary with page, question, progress, score, feedback,
            categories, options, busy flag, last error and last result
        """
        return {
            'page': self.state.page,
            'question': self.get_current_question(),
            'progress': self.get_progress(),
            'score': self.get_score(),
            'feedback': self.state.feedback,
            'last_answer': self.state.user_answers[-1] if self.state.user_answers else None,
            'categories': list(self.categories),
            'options': self.options,
            'busy': self.state.busy,
            'error': self.last_error,
            'result': self.last_result,
        }

    # Guards and error handling

    def _require_idle(self, operation: str) -> None:
        if self.state.busy:
            raise ControllerBusyError(f"Cannot {operation} while a request is in progress")

    def _require_page(self, operation: str, *pages: Page) -> None:
        if self.state.page not in pages:
            raise InvalidTransitionError(
                f"Cannot {operation} on the {self.state.page.value} page"
            )

    def _reject(self, error: InvalidTransitionError, operation: str) -> Dict[str, Any]:
        self.logger.warning(f"Rejected {operation} for channel {self.channel_id}: {error}")
        return {
            'success': False,
            'error': str(error),
            'kind': error.kind,
            'operation': operation,
            'user_message': self._get_user_friendly_error_message(error, operation)
        }

    async def _handle_fetch_error(self, error: TriviaClientError, operation: str) -> Dict[str, Any]:
        """
        Record a provider error, redraw, and build the failure result.

        Args:
            error: The exception raised by the trivia client
            operation: Description of the operation that failed

        Returns:
            Dictionary with error handling results
        """
        self.logger.error(f"Error in {operation} for channel {self.channel_id}: {error}")
        user_message = self._get_user_friendly_error_message(error, operation)
        self.last_error = ErrorRecord(kind=error.kind, message=user_message, detail=str(error))
        await self._render()
        return {
            'success': False,
            'error': str(error),
            'kind': error.kind,
            'operation': operation,
            'user_message': user_message
        }

    def _get_user_friendly_error_message(self, error: Exception, operation: str) -> str:
        """
        Generate user-friendly error messages.

        Args:
            error: The exception that occurred
            operation: Description of the operation that failed

        Returns:
            User-friendly error message
        """
        if isinstance(error, ControllerBusyError):
            return "⏳ Still waiting on the trivia service. Please try again in a moment."

        elif isinstance(error, InvalidTransitionError):
            return f"❌ You can't {operation} right now. Use `/trivia_status` to see where the quiz is."

        elif isinstance(error, QuestionFetchError) and error.rate_limited:
            return "⏳ Too many requests to the trivia service. Wait a few seconds and try again."

        elif isinstance(error, QuestionFetchError) and error.exhausted:
            return "❌ No more questions at this difficulty and category. Try different options."

        elif isinstance(error, QuestionFetchError):
            return "❌ The trivia service sent a question that could not be read. Please try again."

        elif isinstance(error, TokenError):
            return "❌ Could not start a new trivia session. Please try again."

        elif isinstance(error, NetworkError):
            return "❌ Could not reach the trivia service. Please try again in a moment."

        else:
            return f"❌ An unexpected error occurred during {operation}. Please try again."

    async def _fetch(self, request: Callable[[], Awaitable[Any]]) -> Any:
        self.state.busy = True
        try:
            return await request()
        finally:
            self.state.busy = False

    async def _render(self) -> None:
        if self.renderer is None:
            return
        try:
            await self.renderer(self.get_view())
        except Exception as e:
            self.logger.error(f"Failed to render view for channel {self.channel_id}: {e}", exc_info=True)

    # Provider setup

    async def initialize(self) -> Dict[str, Any]:
        """
        Obtain a session token and the category list.

        The controller stays on the intro page whatever happens here.

        Returns:
            Dictionary with operation results and error information
        """
        operation = "initialize"
        try:
            self._require_idle(operation)
        except InvalidTransitionError as e:
            return self._reject(e, operation)

        try:
            await self._fetch(self.client.request_session_token)
        except TriviaClientError as e:
            return await self._handle_fetch_error(e, operation)

        result = await self.load_categories()
        if result['success']:
            self.logger.info(
                f"Controller initialized for channel {self.channel_id} "
                f"with {len(self.categories)} categories"
            )
        return result

    async def load_categories(self) -> Dict[str, Any]:
        """
        Fetch the category list used to validate and display category choices.

        Returns:
            Dictionary with operation results and error information
        """
        operation = "load categories"
        try:
            self._require_idle(operation)
        except InvalidTransitionError as e:
            return self._reject(e, operation)

        try:
            self.categories = await self._fetch(self.client.fetch_categories)
        except TriviaClientError as e:
            return await self._handle_fetch_error(e, operation)

        self.last_error = None
        return {
            'success': True,
            'message': f"Loaded {len(self.categories)} categories",
            'categories': list(self.categories)
        }

    # Transitions

    async def _fetch_question(self) -> Question:
        if self.client.token is None:
            await self.client.request_session_token()
        try:
            return await self.client.fetch_question(self.options)
        except TokenError as e:
            # The provider forgets tokens after a period of inactivity
            self.logger.warning(
                f"Session token rejected for channel {self.channel_id}, requesting a new one: {e}"
            )
            await self.client.request_session_token()
            return await self.client.fetch_question(self.options)

    async def start(self) -> Dict[str, Any]:
        """
        Start a new game from the intro or outro page.

        The first question is fetched before anything is reset, so a failed
        request leaves the current page untouched.

        Returns:
            Dictionary with operation results and error information
        """
        operation = "start a quiz"
        try:
            self._require_idle(operation)
            self._require_page(operation, Page.INTRO, Page.OUTRO)
        except InvalidTransitionError as e:
            return self._reject(e, operation)

        try:
            question = await self._fetch(self._fetch_question)
        except TriviaClientError as e:
            return await self._handle_fetch_error(e, operation)

        self.store.clear()
        self.state = QuizState(page=Page.QUESTION, current_question_index=0)
        self.store.append(question)
        self.last_error = None
        self.last_result = None

        self.logger.info(
            f"Started quiz for channel {self.channel_id}: "
            f"questions={self.options.question_count}, difficulty={self.options.difficulty.value}, "
            f"category={self.options.category}"
        )
        await self._render()
        return {
            'success': True,
            'message': "Quiz started",
            'progress': self.get_progress()
        }

    async def submit_answer(self, answer: Optional[str]) -> Dict[str, Any]:
        """
        Record the answer to the current question and show feedback.

        Args:
            answer: The selected answer string

        Returns:
            Dictionary with operation results, including whether the answer was correct
        """
        operation = "submit an answer"
        try:
            self._require_idle(operation)
            self._require_page(operation, Page.QUESTION)
            if not isinstance(answer, str) or not answer:
                raise InvalidTransitionError("An answer must be selected")
            question = self.get_current_question()
            if question is None:
                raise InvalidTransitionError("There is no current question")
        except InvalidTransitionError as e:
            return self._reject(e, operation)

        self.state.user_answers.append(answer)
        self.state.feedback = self.quiz_engine.build_feedback(question, answer)
        self.state.page = Page.ANSWER
        correct = self.quiz_engine.is_correct(question, answer)

        self.logger.info(
            f"Answer submitted for channel {self.channel_id}, question "
            f"{self.state.current_question_index + 1}: {'correct' if correct else 'incorrect'}"
        )
        await self._render()
        return {
            'success': True,
            'message': self.state.feedback,
            'correct': correct,
            'score': self.get_score()
        }

    async def continue_quiz(self) -> Dict[str, Any]:
        """
        Move on from the answer page.

        Fetches the next question, or after the last question refreshes the
        session token and shows the outro.

        Returns:
            Dictionary with operation results and error information
        """
        operation = "continue"
        try:
            self._require_idle(operation)
            self._require_page(operation, Page.ANSWER)
        except InvalidTransitionError as e:
            return self._reject(e, operation)

        if self.quiz_engine.is_last_question(self.state, self.options):
            return await self._finish_quiz(operation)

        try:
            question = await self._fetch(self._fetch_question)
        except TriviaClientError as e:
            return await self._handle_fetch_error(e, operation)

        self.store.append(question)
        self.state.current_question_index += 1
        self.state.feedback = None
        self.state.page = Page.QUESTION
        self.last_error = None

        self.logger.debug(
            f"Advanced to question {self.state.current_question_index + 1} for channel {self.channel_id}"
        )
        await self._render()
        return {
            'success': True,
            'message': "Next question",
            'progress': self.get_progress()
        }

    async def _finish_quiz(self, operation: str) -> Dict[str, Any]:
        # The provider's no-repeat window is tied to the token, so each game gets a fresh one
        try:
            await self._fetch(self.client.request_session_token)
        except TriviaClientError as e:
            return await self._handle_fetch_error(e, operation)

        self.last_result = QuizResult(score=self.get_score(), total=self.options.question_count)
        self.store.clear()
        self.state = QuizState(page=Page.OUTRO)
        self.last_error = None

        self.logger.info(
            f"Quiz completed for channel {self.channel_id}: "
            f"{self.last_result.score}/{self.last_result.total}"
        )
        await self._render()
        return {
            'success': True,
            'message': "Quiz complete",
            'result': self.last_result
        }

    # Option changes

    def _check_options_editable(self, operation: str) -> None:
        self._require_idle(operation)
        self._require_page(operation, Page.INTRO)

    def set_category(self, category: Optional[int]) -> Dict[str, Any]:
        """
        Choose the category for the next game.

        Args:
            category: Provider category id, or None for any category

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        operation = "change the category"
        try:
            self._check_options_editable(operation)
        except InvalidTransitionError as e:
            return self._reject(e, operation)

        error = self.config_manager.validate_category(category)
        if error:
            return error
        if category is not None and self.categories and category not in {c.id for c in self.categories}:
            return {
                'success': False,
                'error': f"Unknown category id: {category}",
                'user_message': f"❌ There is no category {category}. Use `/trivia_categories` to list them."
            }

        self.options.category = category
        label = "any category" if category is None else self.get_category_name(category)
        self.logger.info(f"Category for channel {self.channel_id} set to {label}")
        return {
            'success': True,
            'message': f"Category set to {label}",
            'user_message': f"✅ Questions will come from {label}"
        }

    def set_difficulty(self, difficulty: Any) -> Dict[str, Any]:
        """Choose the difficulty for the next game."""
        operation = "change the difficulty"
        try:
            self._check_options_editable(operation)
        except InvalidTransitionError as e:
            return self._reject(e, operation)

        parsed = self.config_manager.parse_difficulty(difficulty)
        if parsed is None:
            return {
                'success': False,
                'error': f"Unknown difficulty: {difficulty!r}",
                'user_message': "❌ Difficulty must be one of: easy, medium, hard"
            }

        self.options.difficulty = parsed
        self.logger.info(f"Difficulty for channel {self.channel_id} set to {parsed.value}")
        return {
            'success': True,
            'message': f"Difficulty set to {parsed.value}",
            'user_message': f"✅ Difficulty set to {parsed.value}"
        }

    def set_question_count(self, count: int) -> Dict[str, Any]:
        """Choose how many questions the next game has."""
        operation = "change the number of questions"
        try:
            self._check_options_editable(operation)
        except InvalidTransitionError as e:
            return self._reject(e, operation)

        error = self.config_manager.validate_question_count(count)
        if error:
            return error

        self.options.question_count = count
        self.logger.info(f"Question count for channel {self.channel_id} set to {count}")
        return {
            'success': True,
            'message': f"Question count set to {count}",
            'user_message': f"✅ Question count set to {count}"
        }

    def get_category_name(self, category: Optional[int]) -> str:
        if category is None:
            return "any category"
        for item in self.categories:
            if item.id == category:
                return item.name
        return f"category {category}"
