"""Bot application setup and dispatcher."""

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chicken_duel.config import Settings
from chicken_duel.engine.types import DuelConfig
from chicken_duel.services.arena import ArenaRegistry


def create_bot(settings: Settings) -> Bot:
    """Create and configure the Telegram bot instance."""
    return Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )


def create_dispatcher(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    arena: ArenaRegistry | None = None,
) -> Dispatcher:
    """Create and configure the dispatcher with routers and shared dependencies.

    Handlers receive `settings`, `session_factory` and `arena` as keyword arguments.
    """
    from chicken_duel.bot.handlers import admin_router, arena_router, common_router

    dp = Dispatcher()
    dp["settings"] = settings
    dp["session_factory"] = session_factory
    dp["arena"] = arena or ArenaRegistry(DuelConfig.from_settings(settings))

    dp.include_router(common_router)
    dp.include_router(arena_router)
    dp.include_router(admin_router)
    return dp
