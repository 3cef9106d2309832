"""Arena handlers - /login, fighter selection, running the fight, /history."""

import asyncio
import html
import logging
import time

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...config import Settings
from ...engine.duel import DuelEngine
from ...engine.runner import DuelRunner
from ...engine.types import DuelPhase, Side
from ...services.arena import ArenaRegistry, ArenaSession
from ...services.coupons import CouponCheckStatus, CouponService
from ...services.results import ResultService
from ...utils.codes import format_prize
from ..utils import (
    format_arena_status,
    format_outcome,
    format_side,
    log_callback,
    log_command,
    safe_handler,
    validate_callback_message,
    validate_message_user,
)

logger = logging.getLogger(__name__)

router = Router(name="arena")


# Callback data prefixes
SIDE_PREFIX = "side:"
START_FIGHT = "fight:start"


def get_side_keyboard() -> InlineKeyboardMarkup:
    """Create fighter selection keyboard."""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text=format_side(Side.RED.value),
                    callback_data=f"{SIDE_PREFIX}{Side.RED.value}",
                ),
                InlineKeyboardButton(
                    text=format_side(Side.BLUE.value),
                    callback_data=f"{SIDE_PREFIX}{Side.BLUE.value}",
                ),
            ]
        ]
    )


def get_start_keyboard() -> InlineKeyboardMarkup:
    """Create the start-fight keyboard (with the option to switch sides)."""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="⚔️ Start fight", callback_data=START_FIGHT)],
            [
                InlineKeyboardButton(
                    text=f"Switch to {format_side(Side.RED.value)}",
                    callback_data=f"{SIDE_PREFIX}{Side.RED.value}",
                ),
                InlineKeyboardButton(
                    text=f"Switch to {format_side(Side.BLUE.value)}",
                    callback_data=f"{SIDE_PREFIX}{Side.BLUE.value}",
                ),
            ],
        ]
    )


@router.message(Command("login"))
@safe_handler
@log_command("/login")
async def cmd_login(
    message: Message,
    arena: ArenaRegistry,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Handle /login command - validate a coupon and open an arena session.

    Usage: /login <coupon> <player_id>
    """
    if not validate_message_user(message) or not message.text:
        await message.answer("Could not identify user.")
        return

    parts = message.text.split(maxsplit=2)
    if len(parts) < 3:
        await message.answer(
            "<b>Usage:</b> /login &lt;coupon&gt; &lt;player_id&gt;\n\n"
            "Please enter both a coupon code and a player ID."
        )
        return

    async with session_factory() as session:
        check = await CouponService(session).check_coupon(parts[1], parts[2])

    if check.status == CouponCheckStatus.USED:
        await message.answer("❌ This coupon has already been used.")
        return
    if check.status == CouponCheckStatus.INVALID or check.coupon_id is None:
        await message.answer("❌ Invalid coupon or player ID. Please check and try again.")
        return

    result = arena.login(
        telegram_user_id=message.from_user.id,
        coupon_id=check.coupon_id,
        coupon_code=check.code,
        player_code=check.player_code,
    )
    if not result.success:
        await message.answer(f"❌ {result.message}")
        return

    await message.answer(
        f"✅ Coupon <code>{html.escape(check.code)}</code> accepted.\n\nChoose the chicken you back:",
        reply_markup=get_side_keyboard(),
    )


@router.callback_query(F.data.startswith(SIDE_PREFIX))
@safe_handler
@log_callback("select_side")
async def callback_select_side(callback: CallbackQuery, arena: ArenaRegistry) -> None:
    """Handle fighter selection buttons."""
    if not callback.data or not validate_callback_message(callback):
        return

    side = callback.data.removeprefix(SIDE_PREFIX)
    result = arena.select_side(callback.from_user.id, side)
    if not result.success:
        await callback.answer(result.message, show_alert=True)
        return

    await callback.answer(result.message)
    await callback.message.edit_text(
        f"You back the <b>{format_side(side)}</b> chicken.\n\nReady when you are!",
        reply_markup=get_start_keyboard(),
    )


@router.callback_query(F.data == START_FIGHT)
@safe_handler
@log_callback("start_fight")
async def callback_start_fight(
    callback: CallbackQuery,
    arena: ArenaRegistry,
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
) -> None:
    """Handle the start fight button - run the duel in the background."""
    if not validate_callback_message(callback):
        return

    session = arena.get(callback.from_user.id)
    if session is None:
        await callback.answer("Please /login with your coupon first.", show_alert=True)
        return

    if session.is_running or session.engine.phase is not DuelPhase.IDLE:
        await callback.answer("This fight has already started.", show_alert=True)
        return

    if session.engine.duel.player_choice is None:
        await callback.answer("Please select a fighter!", show_alert=True)
        return

    # No await between the checks above and claiming the session
    session.task = asyncio.create_task(
        run_fight(callback.message, session, arena, session_factory, settings),
        name=f"duel-{session.coupon_id}",
    )
    await callback.answer("The fight begins!")


async def run_fight(
    message: Message,
    session: ArenaSession,
    arena: ArenaRegistry,
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
) -> None:
    """Run a duel to completion, keep the arena message updated, then save the result.

    The session is released once the result is stored. If saving fails it stays
    in the arena so its coupon can't buy a second duel.
    """
    engine = session.engine
    runner = DuelRunner(engine, frame_interval=settings.frame_interval)
    started_at = time.monotonic()

    render_task = asyncio.create_task(render_arena(message, engine, settings.status_refresh_seconds))
    try:
        result = await runner.run()
    except Exception:
        # Background task boundary
        logger.exception(f"Duel for coupon {session.coupon_id} crashed")
        await _edit_quietly(message, "❌ The fight was interrupted. Your coupon has not been used.")
        return
    finally:
        render_task.cancel()
        await asyncio.gather(render_task, return_exceptions=True)

    if not result.success or result.outcome is None:
        await _edit_quietly(message, f"❌ {html.escape(result.message)}")
        return

    outcome = result.outcome
    await _edit_quietly(message, f"{format_arena_status(engine.get_duel_state())}\n\n{format_outcome(outcome)}")

    try:
        async with session_factory() as db_session:
            saved = await ResultService(db_session).save_duel(
                coupon_id=session.coupon_id,
                telegram_user_id=session.telegram_user_id,
                outcome=outcome,
                duration_seconds=time.monotonic() - started_at,
                combat_log=result.combat_log,
            )
    except Exception:
        logger.exception(f"Failed to save duel result for coupon {session.coupon_id}")
        saved = None

    if saved is None or not saved.success:
        await message.answer(
            "⚠️ Your result could not be saved. Please contact support with your coupon "
            f"<code>{html.escape(session.coupon_code)}</code>."
        )
        return

    arena.release(session)


async def render_arena(message: Message, engine: DuelEngine, refresh_seconds: float) -> None:
    """Redraw the arena message until the duel ends.

    Runs beside the frame driver so slow Telegram edits never delay frames.
    """
    last_text = ""
    while not engine.is_over:
        text = format_arena_status(engine.get_duel_state())
        if text != last_text:
            await _edit_quietly(message, text)
            last_text = text
        await asyncio.sleep(refresh_seconds)


async def _edit_quietly(message: Message, text: str) -> None:
    """Edit a message, ignoring Telegram's 'message is not modified' complaints."""
    try:
        await message.edit_text(text)
    except TelegramBadRequest as e:
        logger.debug(f"Arena message edit skipped: {e}")


@router.message(Command("history"))
@safe_handler
@log_command("/history")
async def cmd_history(message: Message, session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Handle /history command - list the user's past duels."""
    if not validate_message_user(message):
        await message.answer("Could not identify user.")
        return

    async with session_factory() as session:
        records = await ResultService(session).get_records_for_user(message.from_user.id)

    if not records:
        await message.answer("You haven't fought any duels yet. Use /login to enter the arena.")
        return

    lines = ["<b>📜 Your duels</b>\n"]
    for record in records[:10]:
        verdict = f"won {format_prize(record.reward)}" if record.player_won else "lost"
        lines.append(
            f"• Backed {format_side(record.player_choice.value)}, "
            f"winner {format_side(record.winner.value)} - {verdict}"
        )
    await message.answer("\n".join(lines))
