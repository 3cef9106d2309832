"""Common bot handlers - /start, /help commands."""

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from ..utils import log_command, safe_handler

router = Router(name="common")

WELCOME_TEXT = (
    "<b>🐔 Welcome to the Chicken Duel arena!</b>\n\n"
    "Two chickens, RED and BLUE, trade blows until one drops.\n"
    "Back the winner and you take home a prize.\n\n"
    "To enter, log in with your coupon and player ID:\n"
    "<code>/login &lt;coupon&gt; &lt;player_id&gt;</code>"
)

HELP_TEXT = (
    "<b>Chicken Duel - Commands</b>\n\n"
    "/login &lt;coupon&gt; &lt;player_id&gt; - Enter the arena with a coupon\n"
    "/history - Your past duels\n"
    "/help - Show this message\n\n"
    "<b>How it works</b>\n"
    "1. Log in with a valid coupon\n"
    "2. Pick the chicken you back\n"
    "3. Press <i>Start fight</i> and watch\n\n"
    "Each coupon buys exactly one duel. If your chicken wins you receive a random prize."
)


@router.message(Command("start"))
@safe_handler
@log_command("/start")
async def cmd_start(message: Message) -> None:
    """Handle /start command."""
    await message.answer(WELCOME_TEXT)


@router.message(Command("help"))
@safe_handler
@log_command("/help")
async def cmd_help(message: Message) -> None:
    """Handle /help command."""
    await message.answer(HELP_TEXT)
