"""
Embed rendering for the Trivia Quiz Bot.
Projects a controller view onto Discord embeds; no quiz state is changed here.
"""
import html
from typing import Any, Dict, List

import discord

from .models import Category, Page


INTRO_COLOR = 0x6699ff
QUESTION_COLOR = 0x00ff00
CORRECT_COLOR = 0x00ff00
INCORRECT_COLOR = 0xffaa00
OUTRO_COLOR = 0x9966ff
ERROR_COLOR = 0xff0000

DIFFICULTY_LABELS = {
    'easy': '🟢 Easy',
    'medium': '🟡 Medium',
    'hard': '🔴 Hard',
}


def display_text(text: str) -> str:
    """Decode the HTML entities the provider embeds in question text."""
    return html.unescape(text)


def _options_summary(view: Dict[str, Any]) -> str:
    options = view['options']
    category = "Any"
    if options.category is not None:
        category = next(
            (c.name for c in view['categories'] if c.id == options.category),
            str(options.category)
        )
    return (
        f"Questions: {options.question_count}\n"
        f"Difficulty: {DIFFICULTY_LABELS.get(options.difficulty.value, options.difficulty.value)}\n"
        f"Category: {display_text(category)}"
    )


def _status_footer(view: Dict[str, Any]) -> str:
    progress = view['progress']
    return f"Score: {view['score']} • Question {progress['current']} of {progress['total']}"


def build_embed(view: Dict[str, Any]) -> discord.Embed:
    """
    Build the embed for the controller's current page.

    Args:
        view: Dictionary returned by QuizController.get_view()

    Returns:
        Embed for the page, with an error field when the last request failed
    """
    page = view['page']

    if page == Page.QUESTION:
        embed = _build_question_embed(view)
    elif page == Page.ANSWER:
        embed = _build_answer_embed(view)
    elif page == Page.OUTRO:
        embed = _build_outro_embed(view)
    else:
        embed = _build_intro_embed(view)

    error = view.get('error')
    if error is not None:
        embed.add_field(name="⚠️ Problem", value=error.message, inline=False)

    return embed


def _build_intro_embed(view: Dict[str, Any]) -> discord.Embed:
    embed = discord.Embed(
        title="🎯 Trivia Quiz",
        description="Answer multiple-choice questions from the Open Trivia Database.",
        color=INTRO_COLOR
    )
    embed.add_field(name="⚙️ Quiz Options", value=_options_summary(view), inline=False)
    embed.add_field(
        name="🎮 How to play",
        value=(
            "`/trivia_start` to begin\n"
            "`/trivia_category`, `/trivia_difficulty`, `/trivia_questions` to change options"
        ),
        inline=False
    )
    return embed


def _build_question_embed(view: Dict[str, Any]) -> discord.Embed:
    question = view['question']
    progress = view['progress']

    embed = discord.Embed(
        title=f"🎯 Question {progress['current']}/{progress['total']}",
        description=display_text(question.text) if question else "No question loaded.",
        color=QUESTION_COLOR
    )
    if question is not None:
        answers = "\n".join(
            f"**{number}.** {display_text(answer)}"
            for number, answer in enumerate(question.answers, start=1)
        )
        embed.add_field(name="Answers", value=answers, inline=False)
    embed.set_footer(text=f"{_status_footer(view)} • Reply with /trivia_answer <number>")
    return embed


def _build_answer_embed(view: Dict[str, Any]) -> discord.Embed:
    question = view['question']
    feedback = view['feedback'] or ""
    correct = question is not None and view.get('last_answer') == question.correct_answer

    embed = discord.Embed(
        title="✅ Correct!" if correct else "❌ Incorrect",
        description=display_text(feedback),
        color=CORRECT_COLOR if correct else INCORRECT_COLOR
    )
    progress = view['progress']
    next_step = "see your results" if progress['current'] >= progress['total'] else "get the next question"
    embed.add_field(name="➡️ Next", value=f"Use `/trivia_next` to {next_step}", inline=False)
    embed.set_footer(text=_status_footer(view))
    return embed


def _build_outro_embed(view: Dict[str, Any]) -> discord.Embed:
    result = view.get('result')
    embed = discord.Embed(
        title="🎉 Quiz Complete!",
        color=OUTRO_COLOR
    )
    if result is not None:
        embed.description = f"You scored **{result.score}** out of **{result.total}**."
    embed.add_field(
        name="🎯 Play Again",
        value="Use `/trivia_start` to begin a new quiz",
        inline=False
    )
    embed.set_footer(text="Thanks for playing!")
    return embed


def build_categories_embed(categories: List[Category]) -> discord.Embed:
    """List category ids and names for /trivia_category."""
    embed = discord.Embed(title="📚 Trivia Categories", color=INTRO_COLOR)
    if not categories:
        embed.description = "No categories loaded yet."
        return embed

    lines = [f"`{category.id}` {display_text(category.name)}" for category in categories]
    embed.description = "\n".join(lines)[:4000]
    embed.set_footer(text="Use /trivia_category <id> to choose one, or 0 for any category")
    return embed


def build_message_embed(message: str, title: str, color: int) -> discord.Embed:
    return discord.Embed(title=title, description=message, color=color)
