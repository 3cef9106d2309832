"""Admin handlers - coupon issuing."""

import html

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...config import Settings
from ...services.coupons import CouponService
from ..utils import log_command, safe_handler, validate_message_user

router = Router(name="admin")


def is_admin(user_id: int, settings: Settings) -> bool:
    """Check if user is listed as a bot admin."""
    return user_id in settings.get_admin_user_ids()


@router.message(Command("issue"))
@safe_handler
@log_command("/issue")
async def cmd_issue(
    message: Message,
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
) -> None:
    """Handle /issue command - create a coupon bound to a player ID.

    Usage: /issue <coupon> <player_id>
    """
    if not validate_message_user(message) or not message.text:
        await message.answer("Could not identify user.")
        return

    if not is_admin(message.from_user.id, settings):
        await message.answer("Only arena administrators can issue coupons.")
        return

    parts = message.text.split(maxsplit=2)
    if len(parts) < 3:
        await message.answer("<b>Usage:</b> /issue &lt;coupon&gt; &lt;player_id&gt;")
        return

    async with session_factory() as session:
        coupon = await CouponService(session).issue_coupon(parts[1], parts[2])
        if coupon is None:
            await session.rollback()
            await message.answer("❌ That coupon code is empty or already exists.")
            return
        await session.commit()

    await message.answer(
        f"✅ Coupon <code>{html.escape(coupon.code)}</code> issued for player "
        f"<code>{html.escape(coupon.player_code)}</code>."
    )
