#!/usr/bin/env python3
"""
SpamShield - Entry Point
========================

Loads .env, validates configuration and runs the bot until interrupted.
"""

import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()

from spamshield.bot import SpamShieldBot  # noqa: E402
from spamshield.core.config import ConfigValidationError, get_config, validate_and_log_config  # noqa: E402
from spamshield.core.logger import logger  # noqa: E402


async def main() -> None:
    """
    Main entry point.

    Handles the bot lifecycle:
    1. Validates configuration (fails fast on a missing token)
    2. Creates the bot instance
    3. Connects to Discord until shutdown

    Raises:
        SystemExit: If configuration is invalid or the bot fails to start
    """
    logger.tree("SPAMSHIELD STARTING", [
        ("Commands", f"{get_config().command_prefix}antispam"),
    ], "🛡️")

    bot = SpamShieldBot()
    logger.success("Bot instance created")

    async with bot:
        await bot.start(get_config().discord_token)


if __name__ == "__main__":
    try:
        validate_and_log_config()
    except ConfigValidationError as e:
        logger.error("❌ Invalid configuration", [("Error", str(e))])
        sys.exit(1)

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("🛑 Bot stopped by user (Ctrl+C)")
    except Exception as e:
        logger.critical("Bot Crashed", [
            ("Error Type", type(e).__name__),
            ("Error", str(e)[:200]),
        ])
        sys.exit(1)
