"""
Discora - Entry Point
=====================

Main entry point for the bot.
"""

import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()

from discora.bot import DiscoraBot
from discora.core.config import config
from discora.core.logger import logger


async def main():
    """Main entry point."""
    missing = config.missing_keys()
    if missing:
        logger.error("Missing required configuration", [
            ("Keys", ", ".join(missing)),
            ("Hint", "Copy .env.example to .env and fill it in"),
        ])
        sys.exit(1)

    if not config.ai_enabled:
        logger.warning("GEMINI_API_KEY not set, AI moderation disabled")

    bot = DiscoraBot()

    try:
        await bot.start(config.TOKEN)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    finally:
        await bot.close()


def run():
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
