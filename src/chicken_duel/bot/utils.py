"""Bot utilities - error handling, logging, and arena formatting helpers."""

import functools
import logging
from typing import Any, Callable

from aiogram.exceptions import TelegramBadRequest
from aiogram.types import CallbackQuery, Message

from ..engine.types import DuelOutcome, Side
from ..utils.codes import format_prize

logger = logging.getLogger("chicken_duel.bot")

SIDE_EMOJI = {Side.RED.value: "🔴", Side.BLUE.value: "🔵"}


def safe_handler(func: Callable) -> Callable:
    """Decorator to wrap handlers with error handling.

    Catches all exceptions, logs them, and sends a user-friendly error message.
    Works with both Message and CallbackQuery handlers.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        update: Message | CallbackQuery | None = None
        for arg in args:
            if isinstance(arg, (Message, CallbackQuery)):
                update = arg
                break

        try:
            return await func(*args, **kwargs)
        except TelegramBadRequest as e:
            # Old buttons produce "query is too old"; nothing to tell the user
            if "query is too old" in str(e).lower():
                logger.debug(f"Ignoring old callback query in {func.__name__}")
                return None
            raise
        except Exception as e:
            user_id = None
            chat_id = None

            if isinstance(update, Message):
                user_id = update.from_user.id if update.from_user else None
                chat_id = update.chat.id
            elif isinstance(update, CallbackQuery):
                user_id = update.from_user.id
                chat_id = update.message.chat.id if update.message else None

            logger.exception(
                f"Handler error in {func.__name__}: {e}",
                extra={
                    "user_id": user_id,
                    "chat_id": chat_id,
                    "handler": func.__name__,
                },
            )

            error_msg = "Something went wrong in the arena. Please try again later."

            try:
                if isinstance(update, Message):
                    await update.reply(error_msg)
                elif isinstance(update, CallbackQuery):
                    await update.answer(error_msg, show_alert=True)
            except Exception:
                logger.exception("Failed to send error message to user")

            return None

    return wrapper


def log_command(command: str) -> Callable:
    """Decorator to log command usage.

    Args:
        command: The command name (e.g., "/start", "/login")
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for arg in args:
                if isinstance(arg, Message):
                    user_id = arg.from_user.id if arg.from_user else None
                    username = arg.from_user.username if arg.from_user else None
                    logger.info(f"Command {command} from user {user_id} (@{username}) in chat {arg.chat.id}")
                    break

            return await func(*args, **kwargs)

        return wrapper

    return decorator


def log_callback(action: str) -> Callable:
    """Decorator to log callback query actions.

    Args:
        action: Description of the action (e.g., "select_side", "start_fight")
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for arg in args:
                if isinstance(arg, CallbackQuery):
                    chat_id = arg.message.chat.id if arg.message else None
                    logger.info(
                        f"Callback {action} from user {arg.from_user.id} (@{arg.from_user.username}) in chat {chat_id}"
                    )
                    break

            return await func(*args, **kwargs)

        return wrapper

    return decorator


def validate_message_user(message: Message) -> bool:
    """Check if message has valid from_user."""
    return message.from_user is not None and message.from_user.id is not None


def validate_callback_message(callback: CallbackQuery) -> bool:
    """Check if callback query has valid message."""
    return callback.message is not None


def format_side(side: str) -> str:
    """Format a side value as '🔴 RED'."""
    return f"{SIDE_EMOJI.get(side, '')} {side.upper()}".strip()


def format_health_bar(health: int, max_health: int, width: int = 10) -> str:
    """Render health as a fixed-width text bar, e.g. '██████░░░░ 60/100'."""
    health = max(0, min(health, max_health))
    filled = round(width * health / max_health) if max_health else 0
    # Never show an empty bar for a fighter that is still standing
    if health > 0 and filled == 0:
        filled = 1
    return f"{'█' * filled}{'░' * (width - filled)} {health}/{max_health}"


def format_arena_status(duel_state: dict) -> str:
    """Format engine duel state for the arena message."""
    lines = ["<b>🐔 Chicken Duel</b>\n"]

    choice = duel_state.get("player_choice")
    if choice:
        lines.append(f"You back the <b>{format_side(choice)}</b> chicken.")
    first_turn = duel_state.get("first_turn")
    if first_turn:
        lines.append(f"First attack: <b>{format_side(first_turn)}</b>")
    lines.append("")

    for fighter in duel_state["fighters"]:
        marker = " ⚔️" if fighter["is_attacking"] else ""
        lines.append(f"{format_side(fighter['side'])}{marker}")
        lines.append(f"   {format_health_bar(fighter['health'], fighter['max_health'])}")

    return "\n".join(lines)


def format_outcome(outcome: DuelOutcome) -> str:
    """Format the final verdict shown to the user."""
    winner = format_side(outcome.winner.value)
    if outcome.player_won:
        return f"🏆 Winner: <b>{winner}</b>\n\nYOU WIN <b>{format_prize(outcome.reward)}</b>!"
    return f"🏆 Winner: <b>{winner}</b>\n\nYou lose. Better luck next time!"
