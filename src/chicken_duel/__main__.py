"""Entry point for running the Chicken Duel bot."""

import asyncio
import logging
import sys

from chicken_duel.bot.app import create_bot, create_dispatcher
from chicken_duel.config import get_settings
from chicken_duel.db.engine import create_engine, create_session_factory, create_tables


async def main() -> None:
    """Start the bot."""
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    engine = create_engine()
    await create_tables(engine)

    bot = create_bot(settings)
    dp = create_dispatcher(settings, create_session_factory(engine))

    logging.info("Starting Chicken Duel bot...")

    try:
        await dp.start_polling(bot)
    finally:
        dp["arena"].shutdown()
        await bot.session.close()
        await engine.dispose()


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    run()
