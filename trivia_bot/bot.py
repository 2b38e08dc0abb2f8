import discord
from discord import app_commands
from discord.ext import commands
import aiohttp
import logging
import os
from typing import Any, Awaitable, Callable, Dict, Optional

from .config_manager import ConfigManager
from .models import Difficulty
from .quiz_controller import QuizController
from .renderer import (
    ERROR_COLOR,
    INTRO_COLOR,
    build_categories_embed,
    build_embed,
    build_message_embed,
)
from .trivia_client import TriviaClient

logger = logging.getLogger(__name__)

DIFFICULTY_CHOICES = [
    app_commands.Choice(name=difficulty.value.capitalize(), value=difficulty.value)
    for difficulty in Difficulty
]


class QuizBot(commands.Bot):
    """Discord bot that runs one trivia quiz per channel"""

    def __init__(self, config=None):
        # Set up intents - minimal intents for slash commands
        intents = discord.Intents.none()
        intents.guilds = True  # Required for slash commands

        command_prefix = '!'
        if config and 'bot' in config:
            command_prefix = config['bot'].get('command_prefix', '!')

        super().__init__(
            command_prefix=command_prefix,  # Fallback prefix, mainly using slash commands
            intents=intents,
            help_command=None
        )

        # Store configuration
        self.app_config = config or {}

        self.config_manager: Optional[ConfigManager] = None
        self.http_session: Optional[aiohttp.ClientSession] = None
        self.controllers: Dict[int, QuizController] = {}

    async def setup_hook(self):
        """Called when the bot is starting up"""
        try:
            logger.info("Setting up bot components...")

            self.config_manager = ConfigManager()
            if self.app_config:
                self.apply_configuration()

            # One HTTP session shared by every channel's trivia client
            self.http_session = aiohttp.ClientSession()

            await self.setup_commands()

            logger.info("Bot setup completed successfully")

        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    def apply_configuration(self):
        """Apply settings from configuration file to the config manager."""
        problems = self.config_manager.apply_config(self.app_config)
        if problems:
            logger.warning(f"Configuration applied with {len(problems)} problem(s)")

        validation = self.config_manager.validate_settings()
        if not validation['valid']:
            for issue in validation['issues']:
                logger.error(f"Configuration issue: {issue}")
            logger.warning("Falling back to default settings")
            self.config_manager.reset_to_defaults()

    async def close(self):
        """Close the shared HTTP session before disconnecting"""
        if self.http_session is not None and not self.http_session.closed:
            await self.http_session.close()
        await super().close()

    async def setup_commands(self):
        """Register all slash commands"""
        try:
            @self.tree.command(name="help", description="Display available commands and their descriptions")
            async def help_command(interaction: discord.Interaction):
                await self.handle_help(interaction)

            # Quiz control commands
            @self.tree.command(name="trivia_start", description="Start a trivia quiz with the current options")
            async def start_command(interaction: discord.Interaction):
                await self.handle_start(interaction)

            @self.tree.command(name="trivia_answer", description="Answer the current question by its number")
            @app_commands.describe(number="Number of the answer as listed under the question")
            async def answer_command(interaction: discord.Interaction, number: int):
                await self.handle_answer(interaction, number)

            @self.tree.command(name="trivia_next", description="Continue to the next question or the results")
            async def next_command(interaction: discord.Interaction):
                await self.handle_next(interaction)

            @self.tree.command(name="trivia_status", description="Show the current quiz page, progress and score")
            async def status_command(interaction: discord.Interaction):
                await self.handle_status(interaction)

            # Option commands
            @self.tree.command(name="trivia_categories", description="List the available trivia categories")
            async def categories_command(interaction: discord.Interaction):
                await self.handle_categories(interaction)

            @self.tree.command(name="trivia_category", description="Choose the category for the next quiz (0 for any)")
            async def category_command(interaction: discord.Interaction, category_id: int):
                await self.handle_set_category(interaction, category_id)

            @self.tree.command(name="trivia_difficulty", description="Choose the difficulty for the next quiz")
            @app_commands.choices(level=DIFFICULTY_CHOICES)
            async def difficulty_command(interaction: discord.Interaction, level: app_commands.Choice[str]):
                await self.handle_set_difficulty(interaction, level.value)

            @self.tree.command(name="trivia_questions", description="Set the number of questions for the next quiz")
            async def questions_command(interaction: discord.Interaction, number: int):
                await self.handle_set_questions(interaction, number)

            logger.info("Slash commands registered successfully")

        except Exception as e:
            logger.error(f"Error setting up commands: {e}")
            raise

    async def on_ready(self):
        """Called when the bot has successfully connected to Discord"""
        logger.info(f"Bot is ready! Logged in as {self.user}")
        logger.info(f"Bot is in {len(self.guilds)} guilds")

        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} slash commands")
        except discord.HTTPException as e:
            logger.error(f"Failed to sync slash commands: {e}")

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors"""
        logger.error(f"An error occurred in event {event}", exc_info=True)

    # Controllers

    def _make_renderer(self, channel: discord.abc.Messageable) -> Callable[[Dict[str, Any]], Awaitable[None]]:
        async def render(view: Dict[str, Any]) -> None:
            await channel.send(embed=build_embed(view))
        return render

    async def get_controller(self, interaction: discord.Interaction) -> QuizController:
        """
        Get the quiz controller for the interaction's channel, creating it on first use.

        A new controller requests its session token and the category list
        before it is returned.

        Args:
            interaction: Discord interaction from a slash command

        Returns:
            The channel's QuizController
        """
        channel_id = interaction.channel_id
        controller = self.controllers.get(channel_id)
        if controller is not None:
            return controller

        client = TriviaClient(session=self.http_session, **self.config_manager.get_api_settings())
        controller = QuizController(
            client,
            self.config_manager,
            renderer=self._make_renderer(interaction.channel),
            channel_id=channel_id
        )
        # Registered before initializing so concurrent commands share it
        self.controllers[channel_id] = controller
        logger.info(f"Created quiz controller for channel {channel_id}")

        await controller.initialize()
        return controller

    async def _run_transition(
        self,
        interaction: discord.Interaction,
        operation: str,
        action: Callable[[QuizController], Awaitable[Dict[str, Any]]]
    ):
        """Defer, run a controller transition, and acknowledge the outcome privately."""
        try:
            await interaction.response.defer(ephemeral=True, thinking=True)
            controller = await self.get_controller(interaction)
            result = await action(controller)

            if result['success']:
                await interaction.followup.send(result["message"], ephemeral=True)
            else:
                await self.send_error_response(interaction, result['user_message'])

        except discord.HTTPException as e:
            logger.error(f"Discord API error during {operation}: {e}")
            await self.send_error_response(interaction, "Discord API error occurred. Please try again in a moment.", "❌ Discord Error")
        except Exception as e:
            logger.error(f"Error in {operation} command: {e}", exc_info=True)
            await self.send_error_response(interaction, f"Failed to {operation}", "❌ Quiz Error")

    async def _run_option_change(
        self,
        interaction: discord.Interaction,
        operation: str,
        action: Callable[[QuizController], Dict[str, Any]]
    ):
        try:
            await interaction.response.defer(ephemeral=True, thinking=True)
            controller = await self.get_controller(interaction)
            result = action(controller)

            if result['success']:
                await self.send_info_response(interaction, result['user_message'], "⚙️ Quiz Options")
            else:
                await self.send_error_response(interaction, result['user_message'], "❌ Configuration Error")

        except Exception as e:
            logger.error(f"Error in {operation} command: {e}", exc_info=True)
            await self.send_error_response(interaction, f"Failed to {operation}", "❌ Configuration Error")

    # Command handlers

    async def handle_help(self, interaction: discord.Interaction):
        """Handle /help command"""
        try:
            help_embed = discord.Embed(
                title="🎯 Trivia Quiz Bot Commands",
                description="Questions come from the Open Trivia Database",
                color=0x00ff00
            )

            help_embed.add_field(
                name="🎮 Playing",
                value=(
                    "`/trivia_start` - Start a quiz with the current options\n"
                    "`/trivia_answer <number>` - Answer the current question\n"
                    "`/trivia_next` - Continue after seeing the feedback\n"
                    "`/trivia_status` - Show the current page, progress and score"
                ),
                inline=False
            )

            help_embed.add_field(
                name="📋 Options (before a quiz starts)",
                value=(
                    "`/trivia_categories` - List categories\n"
                    "`/trivia_category <id>` - Choose a category, 0 for any\n"
                    "`/trivia_difficulty <level>` - Choose easy, medium or hard\n"
                    "`/trivia_questions <number>` - Set the number of questions"
                ),
                inline=False
            )

            settings_summary = self.config_manager.get_settings_summary()
            help_embed.add_field(
                name="⚙️ Default Settings",
                value=f"```\n{settings_summary}\n```",
                inline=False
            )

            help_embed.set_footer(text="Use slash commands to interact with the bot")

            await interaction.response.send_message(embed=help_embed, ephemeral=True)

        except Exception as e:
            logger.error(f"Error in help command: {e}")
            await self.send_error_response(interaction, "Failed to display help information", "❌ Help Error")

    async def handle_start(self, interaction: discord.Interaction):
        """Handle /trivia_start command"""
        await self._run_transition(interaction, "start the quiz", lambda controller: controller.start())

    async def handle_answer(self, interaction: discord.Interaction, number: int):
        """Handle /trivia_answer command; number is 1-based"""
        async def submit(controller: QuizController) -> Dict[str, Any]:
            question = controller.get_current_question()
            answer = None
            if question is not None and 1 <= number <= len(question.answers):
                answer = question.answers[number - 1]
            elif question is not None:
                return {
                    'success': False,
                    'error': f"Answer number out of range: {number}",
                    'user_message': f"❌ Choose an answer between 1 and {len(question.answers)}"
                }
            return await controller.submit_answer(answer)

        await self._run_transition(interaction, "submit the answer", submit)

    async def handle_next(self, interaction: discord.Interaction):
        """Handle /trivia_next command"""
        await self._run_transition(interaction, "continue", lambda controller: controller.continue_quiz())

    async def handle_status(self, interaction: discord.Interaction):
        """Handle /trivia_status command"""
        try:
            await interaction.response.defer(ephemeral=True, thinking=True)
            controller = await self.get_controller(interaction)
            await interaction.followup.send(embed=build_embed(controller.get_view()), ephemeral=True)

        except Exception as e:
            logger.error(f"Error in status command: {e}")
            await self.send_error_response(interaction, "Failed to get quiz status", "❌ Status Error")

    async def handle_categories(self, interaction: discord.Interaction):
        """Handle /trivia_categories command"""
        try:
            await interaction.response.defer(ephemeral=True, thinking=True)
            controller = await self.get_controller(interaction)

            if not controller.categories:
                result = await controller.load_categories()
                if not result['success']:
                    await self.send_error_response(interaction, result['user_message'], "❌ Categories Error")
                    return

            await interaction.followup.send(embed=build_categories_embed(controller.categories), ephemeral=True)

        except Exception as e:
            logger.error(f"Error in categories command: {e}")
            await self.send_error_response(interaction, "Failed to list categories", "❌ Categories Error")

    async def handle_set_category(self, interaction: discord.Interaction, category_id: int):
        """Handle /trivia_category command; 0 selects any category"""
        category = None if category_id == 0 else category_id
        await self._run_option_change(
            interaction, "set the category", lambda controller: controller.set_category(category)
        )

    async def handle_set_difficulty(self, interaction: discord.Interaction, level: str):
        """Handle /trivia_difficulty command"""
        await self._run_option_change(
            interaction, "set the difficulty", lambda controller: controller.set_difficulty(level)
        )

    async def handle_set_questions(self, interaction: discord.Interaction, number: int):
        """Handle /trivia_questions command"""
        await self._run_option_change(
            interaction, "set the question count", lambda controller: controller.set_question_count(number)
        )

    # Responses

    async def _send(self, interaction: discord.Interaction, embed: discord.Embed):
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=True)

    async def send_error_response(self, interaction: discord.Interaction, message: str, title: str = "❌ Error"):
        """Send formatted error response to user"""
        try:
            embed = build_message_embed(message, title, ERROR_COLOR)
            embed.set_footer(text="If this error persists, try using /help for available commands")
            await self._send(interaction, embed)
        except discord.HTTPException:
            logger.error("Failed to send error response to user")

    async def send_info_response(self, interaction: discord.Interaction, message: str, title: str = "ℹ️ Information"):
        """Send formatted info response to user"""
        try:
            await self._send(interaction, build_message_embed(message, title, INTRO_COLOR))
        except discord.HTTPException:
            logger.error("Failed to send info response to user")


async def run_bot(token=None, config=None):
    """Run the bot with proper error handling"""
    # Fall back to environment variable if no token provided
    if not token:
        token = os.getenv('DISCORD_BOT_TOKEN')

    if not token:
        logger.error("No Discord bot token provided")
        return

    bot = QuizBot(config)

    try:
        logger.info("Starting Trivia Quiz Bot...")
        await bot.start(token)
    except discord.LoginFailure:
        logger.error("Invalid bot token provided")
    except discord.HTTPException as e:
        logger.error(f"HTTP error occurred: {e}")
    finally:
        if not bot.is_closed():
            await bot.close()

